"""Workshop Core 顶层包。

演示如何围绕统一的 chat(request) -> result 接口组装聊天客户端：
Provider 适配、函数调用、中间件管道、结构化输出、
embedding 语义检索、基于 Qdrant 的 RAG 以及批量评估。
"""

from workshop_core.domain.models import ChatMessage, ChatRequest, ChatResult
from workshop_core.pipeline import ChatClientBuilder, get_response, get_structured_response

__all__ = [
    "ChatClientBuilder",
    "ChatMessage",
    "ChatRequest",
    "ChatResult",
    "get_response",
    "get_structured_response",
]
