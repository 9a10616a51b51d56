from workshop_core.domain.models import ChatRequest, ChatResult
from workshop_core.providers.base import ChatClient


class DelegatingChatClient:
    """中间件基类：持有下一个 ChatClient，默认原样转发请求。

    子类覆盖 chat()，在调用 self._inner.chat() 前后插入自己的逻辑，
    也可以直接返回（短路）或先等待（延迟）再转发。
    """

    def __init__(self, inner: ChatClient):
        self._inner = inner

    @property
    def name(self) -> str:
        return self._inner.name

    @property
    def inner(self) -> ChatClient:
        return self._inner

    def chat(self, req: ChatRequest) -> ChatResult:
        return self._inner.chat(req)
