from typing import Dict, Iterable

from .definitions import ToolCall, ToolResult
from .functions import FunctionTool


class ToolExecutor:
    """按名称分发模型发起的工具调用。

    工具函数抛出的异常不在这里处理，由调用方（函数调用中间件）
    决定如何反馈给模型。
    """

    def __init__(self, tools: Iterable[FunctionTool]):
        self._tools: Dict[str, FunctionTool] = {t.name: t for t in tools}

    @property
    def tool_names(self) -> list:
        return list(self._tools)

    def execute(self, call: ToolCall) -> ToolResult:
        tool = self._tools.get(call.name)
        if tool is None:
            return ToolResult(call_id=call.id, content=f"Tool not registered: {call.name}")
        return ToolResult(call_id=call.id, content=tool.invoke(call.arguments or {}))
