"""函数调用中间件。

实现流程：
1. 转发请求；
2. 如果回复中有 tool_calls，执行工具并将“助手工具调用消息 + 工具结果消息”
   追加到消息列表；
3. 重复步骤 1-2，最多 max_rounds 轮；超过后以 tool_choice="none" 再请求一次，
   让模型基于已有工具结果直接作答；
4. 返回最终结果，并在 intermediate_messages 中带上所有中间消息。
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List
from uuid import uuid4

from workshop_core.domain.models import ChatMessage, ChatRequest, ChatResult
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.providers.base import ChatClient
from workshop_core.tools.definitions import ToolCall
from workshop_core.tools.executor import ToolExecutor
from workshop_core.tools.functions import FunctionTool

from .delegating import DelegatingChatClient

DEFAULT_MAX_ROUNDS = 20


class FunctionInvokingChatClient(DelegatingChatClient):
    def __init__(self, inner: ChatClient, max_rounds: int = DEFAULT_MAX_ROUNDS):
        super().__init__(inner)
        self.max_rounds = max(1, max_rounds)

    def chat(self, req: ChatRequest) -> ChatResult:
        tools = [t for t in (req.tools or []) if isinstance(t, FunctionTool)]
        if not tools:
            return self._inner.chat(req)

        executor = ToolExecutor(tools)
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}"}
        messages = list(req.messages)
        intermediate: List[ChatMessage] = []

        for round_num in range(1, self.max_rounds + 1):
            result = self._inner.chat(replace(req, messages=list(messages)))
            assistant_msg = result.message
            if assistant_msg is None or not assistant_msg.tool_calls:
                result.intermediate_messages = intermediate + result.intermediate_messages
                return result

            self._log(
                logging.INFO,
                "Executing tool calls",
                log_ctx,
                round=round_num,
                call_count=len(assistant_msg.tool_calls),
            )
            messages.append(assistant_msg)
            intermediate.append(assistant_msg)
            for tool_call in assistant_msg.tool_calls:
                result_msg = self._invoke(executor, tool_call, log_ctx)
                messages.append(result_msg)
                intermediate.append(result_msg)

        self._log(logging.WARNING, "Tool round limit reached", log_ctx, max_rounds=self.max_rounds)
        result = self._inner.chat(replace(req, messages=list(messages), tool_choice="none"))
        result.intermediate_messages = intermediate + result.intermediate_messages
        return result

    def _invoke(self, executor: ToolExecutor, tool_call: ToolCall, log_ctx: Dict[str, Any]) -> ChatMessage:
        self._log(
            logging.INFO,
            "Tool call received",
            log_ctx,
            tool_name=tool_call.name,
            tool_call_id=tool_call.id,
            tool_args=tool_call.arguments,
        )
        try:
            tool_result = executor.execute(tool_call)
        except Exception as e:  # noqa: BLE001 - 工具异常作为工具结果返回给模型
            self._log(
                logging.ERROR,
                "Tool execution failed",
                log_ctx,
                tool_call_id=tool_call.id,
                error=str(e),
            )
            return ChatMessage(role="tool", content=f"Error: {e}", tool_call_id=tool_call.id)
        self._log(
            logging.INFO,
            "Tool execution finished",
            log_ctx,
            tool_call_id=tool_call.id,
            result_preview=tool_result.content[:200],
        )
        return ChatMessage(role="tool", content=tool_result.content, tool_call_id=tool_call.id)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
