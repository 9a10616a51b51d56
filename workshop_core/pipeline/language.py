from dataclasses import replace

from workshop_core.domain.models import ChatMessage, ChatRequest, ChatResult
from workshop_core.providers.base import ChatClient

from .delegating import DelegatingChatClient


class LanguageChatClient(DelegatingChatClient):
    """提示词增强：在每次请求末尾追加一条“用指定语言回复”的用户消息。"""

    def __init__(self, inner: ChatClient, language: str):
        super().__init__(inner)
        self.language = language

    def chat(self, req: ChatRequest) -> ChatResult:
        augmentation = ChatMessage(role="user", content=f"Always reply in the language {self.language}")
        # 复制消息列表，调用方持有的历史保持不变
        return self._inner.chat(replace(req, messages=[*req.messages, augmentation]))
