from typing import List, Optional

from .models import ChatMessage, ChatResult


class ChatHistory:
    """客户端侧累积的对话消息，生命周期与进程一致。"""

    def __init__(self, system_prompt: Optional[str] = None):
        self._messages: List[ChatMessage] = []
        if system_prompt:
            self._messages.append(ChatMessage(role="system", content=system_prompt))

    def add(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def add_user(self, content: str) -> ChatMessage:
        message = ChatMessage(role="user", content=content)
        self._messages.append(message)
        return message

    def add_result(self, result: ChatResult) -> None:
        """追加一次调用产生的全部消息（包括工具调用轮次）。"""
        self._messages.extend(result.all_messages())

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
