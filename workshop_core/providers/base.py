"""ChatClient 抽象接口。

上层（中间件管道、练习应用）不直接依赖具体厂商的 HTTP API，而是依赖此协议：

- 每个厂商实现一个 ChatClient（如 OpenAIChatClient、OllamaChatClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。

中间件本身也实现同一个协议，因此可以任意嵌套组合。
"""

from typing import Protocol
from workshop_core.domain.models import ChatRequest, ChatResult


class ChatClient(Protocol):
    """LLM 对话客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - chat(req): 执行一次非流式对话调用，返回统一的 ChatResult。
    """

    name: str

    def chat(self, req: ChatRequest) -> ChatResult:
        ...
