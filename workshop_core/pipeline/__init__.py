"""聊天客户端中间件管道。

- delegating: 中间件基类，持有下一层 ChatClient。
- builder: 按注册顺序组装中间件（先注册者在最外层）。
- language / rate_limit / function_invocation / logging_client / retry: 具体中间件。
- responses: get_response / get_structured_response 便捷函数。
"""

from workshop_core.pipeline.builder import ChatClientBuilder
from workshop_core.pipeline.delegating import DelegatingChatClient
from workshop_core.pipeline.function_invocation import FunctionInvokingChatClient
from workshop_core.pipeline.language import LanguageChatClient
from workshop_core.pipeline.logging_client import LoggingChatClient
from workshop_core.pipeline.rate_limit import FixedWindowRateLimiter, RateLimitedChatClient
from workshop_core.pipeline.responses import StructuredResponse, get_response, get_structured_response
from workshop_core.pipeline.retry import RetryingChatClient

__all__ = [
    "ChatClientBuilder",
    "DelegatingChatClient",
    "FixedWindowRateLimiter",
    "FunctionInvokingChatClient",
    "LanguageChatClient",
    "LoggingChatClient",
    "RateLimitedChatClient",
    "RetryingChatClient",
    "StructuredResponse",
    "get_response",
    "get_structured_response",
]
