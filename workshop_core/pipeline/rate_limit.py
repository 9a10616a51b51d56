"""固定窗口限流中间件。

注意：一个 RateLimitedChatClient 持有一个限流器，对所有使用该管道的调用方
全局生效，而不是按用户分别限流。
"""

import threading
import time
from typing import Callable, Optional

from workshop_core.domain.exceptions import RateLimitError
from workshop_core.domain.models import ChatRequest, ChatResult
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.providers.base import ChatClient

from .delegating import DelegatingChatClient


class FixedWindowRateLimiter:
    """每个窗口发放 permit_limit 个许可，最多允许 queue_limit 个调用方排队等待。

    - 有空闲许可且无人排队：立即通过。
    - 否则进入队列，等待下一个窗口开始。
    - 队列已满：抛出 RateLimitError(RATE_LIMIT_QUEUE_FULL)。
    """

    def __init__(
        self,
        window: float,
        permit_limit: int = 1,
        queue_limit: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if window <= 0:
            raise ValueError("window must be positive")
        if permit_limit < 1:
            raise ValueError("permit_limit must be at least 1")
        self.window = window
        self.permit_limit = permit_limit
        self.queue_limit = queue_limit
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._window_start = clock()
        self._available = permit_limit
        self._queued = 0

    def _replenish(self, now: float) -> None:
        if now >= self._window_start + self.window:
            elapsed_windows = int((now - self._window_start) // self.window)
            self._window_start += elapsed_windows * self.window
            self._available = self.permit_limit

    def acquire(self) -> float:
        """获取一个许可，返回等待的秒数。"""

        start = self._clock()
        with self._lock:
            self._replenish(start)
            if self._available > 0 and self._queued == 0:
                self._available -= 1
                return 0.0
            if self._queued >= self.queue_limit:
                raise RateLimitError(
                    code="RATE_LIMIT_QUEUE_FULL",
                    message="Too many requests are already waiting for the rate limiter",
                    http_status=429,
                )
            self._queued += 1
        try:
            while True:
                with self._lock:
                    now = self._clock()
                    self._replenish(now)
                    if self._available > 0:
                        self._available -= 1
                        return now - start
                    delay = self._window_start + self.window - now
                self._sleep(max(delay, 0.0))
        finally:
            with self._lock:
                self._queued -= 1


class RateLimitedChatClient(DelegatingChatClient):
    def __init__(self, inner: ChatClient, window: float, limiter: Optional[FixedWindowRateLimiter] = None):
        super().__init__(inner)
        self.limiter = limiter or FixedWindowRateLimiter(window, permit_limit=1, queue_limit=1)

    def chat(self, req: ChatRequest) -> ChatResult:
        waited = self.limiter.acquire()
        if waited:
            logger.info("rate_limit.delayed", extra={"extra": {"waited_seconds": round(waited, 3)}})
        return self._inner.chat(req)
