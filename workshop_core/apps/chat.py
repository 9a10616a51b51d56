"""练习“Chat”：带函数调用与中间件管道的控制台聊天。"""

from typing import Callable, List, Optional

from workshop_core.domain.conversation import ChatHistory
from workshop_core.domain.exceptions import BusinessError
from workshop_core.domain.models import ChatRequest
from workshop_core.pipeline.builder import ChatClientBuilder
from workshop_core.prompts import load_prompt
from workshop_core.providers.base import ChatClient
from workshop_core.tools.functions import FunctionTool

EXIT_COMMANDS = {"exit", "quit"}


def build_chat_pipeline(inner: ChatClient, cfg) -> ChatClient:
    return (
        ChatClientBuilder(inner)
        .use_logging()
        .use_language(cfg.reply_language)
        .use_rate_limit(cfg.rate_limit_window_seconds)
        .use_function_invocation(max_rounds=cfg.max_tool_rounds)
        .build()
    )


class ChatSession:
    """一段进行中的对话：持有消息历史，每轮把工具一起发给管道。"""

    def __init__(
        self,
        client: ChatClient,
        tools: Optional[List[FunctionTool]] = None,
        system_prompt: Optional[str] = None,
    ):
        self._client = client
        self._tools = list(tools or [])
        self.history = ChatHistory(system_prompt if system_prompt is not None else load_prompt("chat_system"))

    def send(self, text: str) -> str:
        self.history.add_user(text)
        result = self._client.chat(ChatRequest(messages=self.history.messages, tools=self._tools or None))
        self.history.add_result(result)
        return result.text


def run_console(
    session: ChatSession,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    while True:
        try:
            text = input_fn("\nYou: ").strip()
        except EOFError:
            break
        if not text or text.lower() in EXIT_COMMANDS:
            break
        try:
            reply = session.send(text)
        except BusinessError as e:
            output_fn(f"[{e.code}] {e.message}")
            continue
        output_fn(f"Bot: {reply}")
