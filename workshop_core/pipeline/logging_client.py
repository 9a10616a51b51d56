import logging
import time
from typing import Any, Dict
from uuid import uuid4

from workshop_core.domain.models import ChatRequest, ChatResult
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.providers.base import ChatClient

from .delegating import DelegatingChatClient


class LoggingChatClient(DelegatingChatClient):
    """记录每次调用的开始、结束、耗时与 token 使用情况。"""

    def __init__(self, inner: ChatClient, log: logging.Logger = logger):
        super().__init__(inner)
        self._logger = log

    def chat(self, req: ChatRequest) -> ChatResult:
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "provider": self.name}
        self._log(
            logging.INFO,
            "Calling chat client",
            log_ctx,
            model=req.model,
            message_count=len(req.messages),
            tool_count=len(req.tools or []),
        )
        start_time = time.time()
        try:
            result = self._inner.chat(req)
        except Exception as e:
            self._log(
                logging.ERROR,
                "Chat call failed",
                log_ctx,
                error=str(e),
                error_type=type(e).__name__,
                elapsed_seconds=round(time.time() - start_time, 2),
            )
            raise
        usage_meta = {}
        if result.usage:
            usage_meta = {
                "prompt_tokens": result.usage.prompt_tokens,
                "completion_tokens": result.usage.completion_tokens,
                "total_tokens": result.usage.total_tokens,
            }
        self._log(
            logging.INFO,
            "Chat call finished",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            finish_reason=result.finish_reason,
            **usage_meta,
        )
        return result

    def _log(self, level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        self._logger.log(level, message, extra={"extra": payload})
