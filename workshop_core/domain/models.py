"""统一的对话与结果数据模型。

本模块定义了在不同 Provider 与中间件之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant/tool）。
- ChatRequest: 沿中间件管道向下传递、最终发给 Provider 的完整请求。
- ChatResult: 从 Provider 解析后的统一响应结果。

所有 Provider 适配器（如 OpenAIChatClient）都只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Any, Dict, List, TYPE_CHECKING

if TYPE_CHECKING:
    # 仅在类型检查时导入，避免运行时循环依赖
    from workshop_core.tools.definitions import ToolCall, ToolDef


# LLM 消息角色类型（与 OpenAI / Ollama 等厂商的 role 字段对应）
Role = Literal["system", "user", "assistant", "tool"]


@dataclass
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色，如 system/user/assistant。
    - content: 纯文本内容。
    - meta: 附加元数据，不直接发给 Provider，主要用于日志。
    - tool_calls: 当 role 为 "assistant" 且模型触发工具调用时，
      这里保存模型发起的工具调用列表。
    - tool_call_id: 当 role 为 "tool" 时，用于关联某一次工具调用。
    """

    role: Role
    content: str
    meta: Dict[str, Any] = field(default_factory=dict)
    tool_calls: Optional[List["ToolCall"]] = None
    tool_call_id: Optional[str] = None


@dataclass
class ChatRequest:
    """一次完整的聊天请求。

    中间件可以在转发前替换其中的字段（通常借助 dataclasses.replace），
    Provider 适配层负责把本结构转换成各家 API 的 JSON 请求体。
    """

    messages: List[ChatMessage]
    model: Optional[str] = None  # 为空时使用 Provider 的默认模型
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    # 工具定义列表；FunctionTool 同时携带可执行函数，供函数调用中间件使用
    tools: Optional[List["ToolDef"]] = None
    tool_choice: Literal["auto", "none", "required"] = "auto"
    # 例如 {"type": "json_object"}，用于结构化输出
    response_format: Optional[Dict[str, Any]] = None

    @classmethod
    def from_prompt(cls, prompt: str, **options: Any) -> "ChatRequest":
        return cls(messages=[ChatMessage(role="user", content=prompt)], **options)


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（目前通常只用 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次对话调用的最终结果。

    - provider / model: 实际响应的 Provider 与模型。
    - choices: 一个或多个候选回答。
    - usage: 可选的 token 使用统计。
    - raw: 原始响应 JSON，用于调试或日志记录。
    - intermediate_messages: 管道内部产生的中间消息（工具调用与工具结果），
      客户端把它们和最终回答一起追加到本地历史中。
    """

    provider: str
    model: str
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None
    intermediate_messages: List[ChatMessage] = field(default_factory=list)

    @property
    def message(self) -> Optional[ChatMessage]:
        return self.choices[0].message if self.choices else None

    @property
    def text(self) -> str:
        msg = self.message
        return (msg.content or "") if msg else ""

    @property
    def finish_reason(self) -> Optional[str]:
        return self.choices[0].finish_reason if self.choices else None

    def all_messages(self) -> List[ChatMessage]:
        messages = list(self.intermediate_messages)
        if self.message is not None:
            messages.append(self.message)
        return messages
