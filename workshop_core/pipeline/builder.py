"""中间件管道构建器。

    client = (
        ChatClientBuilder(inner)
        .use_language("French")
        .use_rate_limit(5)
        .use_function_invocation()
        .build()
    )

先注册的中间件位于最外层：请求按注册顺序依次经过各层，
响应按相反顺序返回。build() 得到的对象本身也是 ChatClient。
"""

from typing import Callable, List, Optional

from tenacity.wait import wait_base

from workshop_core.providers.base import ChatClient

from .function_invocation import DEFAULT_MAX_ROUNDS, FunctionInvokingChatClient
from .language import LanguageChatClient
from .logging_client import LoggingChatClient
from .rate_limit import FixedWindowRateLimiter, RateLimitedChatClient
from .retry import RetryingChatClient

MiddlewareFactory = Callable[[ChatClient], ChatClient]


class ChatClientBuilder:
    def __init__(self, inner: ChatClient):
        self._inner = inner
        self._factories: List[MiddlewareFactory] = []

    def use(self, factory: MiddlewareFactory) -> "ChatClientBuilder":
        """注册一个中间件工厂：接收下一层 client，返回包装后的 client。"""
        self._factories.append(factory)
        return self

    def use_logging(self) -> "ChatClientBuilder":
        return self.use(lambda inner: LoggingChatClient(inner))

    def use_language(self, language: str) -> "ChatClientBuilder":
        return self.use(lambda inner: LanguageChatClient(inner, language))

    def use_rate_limit(
        self,
        window: float,
        limiter: Optional[FixedWindowRateLimiter] = None,
    ) -> "ChatClientBuilder":
        return self.use(lambda inner: RateLimitedChatClient(inner, window, limiter=limiter))

    def use_function_invocation(self, max_rounds: int = DEFAULT_MAX_ROUNDS) -> "ChatClientBuilder":
        return self.use(lambda inner: FunctionInvokingChatClient(inner, max_rounds=max_rounds))

    def use_retry_on_rate_limit(
        self,
        max_attempts: int = 5,
        wait: Optional[wait_base] = None,
    ) -> "ChatClientBuilder":
        return self.use(lambda inner: RetryingChatClient(inner, max_attempts=max_attempts, wait=wait))

    def build(self) -> ChatClient:
        client = self._inner
        for factory in reversed(self._factories):
            client = factory(client)
        return client
