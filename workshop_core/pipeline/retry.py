from typing import Optional

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from workshop_core.domain.exceptions import RateLimitError
from workshop_core.domain.models import ChatRequest, ChatResult
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.providers.base import ChatClient

from .delegating import DelegatingChatClient


class RetryingChatClient(DelegatingChatClient):
    """遇到 RateLimitError 时按指数退避重试，超过次数后原样抛出。"""

    def __init__(self, inner: ChatClient, max_attempts: int = 5, wait: Optional[wait_base] = None):
        super().__init__(inner)
        self._retrying = Retrying(
            retry=retry_if_exception_type(RateLimitError),
            stop=stop_after_attempt(max_attempts),
            wait=wait or wait_exponential(multiplier=1, min=1, max=30),
            before_sleep=self._before_sleep,
            reraise=True,
        )

    def chat(self, req: ChatRequest) -> ChatResult:
        # 每次调用复制一份 Retrying，避免多线程共享重试状态
        return self._retrying.copy()(self._inner.chat, req)

    @staticmethod
    def _before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Rate limited, retrying",
            extra={
                "extra": {
                    "attempt": retry_state.attempt_number,
                    "sleep_seconds": getattr(retry_state.next_action, "sleep", None),
                    "error": str(exc) if exc else None,
                }
            },
        )
