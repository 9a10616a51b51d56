"""面向调用方的便捷函数：文本回复与结构化回复。

结构化回复的做法：
- 把 pydantic 模型的 JSON Schema 作为一条 system 指令追加到消息末尾；
- 请求 response_format={"type": "json_object"}；
- 去掉回复中可能出现的 ```json 代码块标记后再校验；
- 解析失败不抛异常，而是记录在 StructuredResponse.error 中。
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel

from workshop_core.domain.exceptions import StructuredOutputError
from workshop_core.domain.models import ChatMessage, ChatRequest, ChatResult
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.providers.base import ChatClient

T = TypeVar("T", bound=BaseModel)

PromptOrMessages = Union[str, List[ChatMessage]]

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


@dataclass
class StructuredResponse(Generic[T]):
    result: ChatResult
    parsed: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.parsed is not None and self.error is None

    @property
    def text(self) -> str:
        return self.result.text

    def unwrap(self) -> T:
        """返回解析结果；解析失败时抛出 StructuredOutputError。"""
        if not self.ok:
            raise StructuredOutputError(
                code="STRUCTURED_OUTPUT_INVALID",
                message=self.error or "empty structured output",
                http_status=502,
                raw_text=self.result.text,
            )
        return self.parsed


def _to_messages(prompt_or_messages: PromptOrMessages) -> List[ChatMessage]:
    if isinstance(prompt_or_messages, str):
        return [ChatMessage(role="user", content=prompt_or_messages)]
    return list(prompt_or_messages)


def get_response(client: ChatClient, prompt_or_messages: PromptOrMessages, **options: Any) -> ChatResult:
    return client.chat(ChatRequest(messages=_to_messages(prompt_or_messages), **options))


def schema_instruction(model_cls: Type[BaseModel]) -> str:
    schema = json.dumps(model_cls.model_json_schema(), ensure_ascii=False)
    return (
        "Respond with a single JSON object only, no prose and no code fences. "
        f"The JSON object must match this JSON schema: {schema}"
    )


def strip_code_fences(text: str) -> str:
    match = _FENCE_RE.match(text or "")
    return match.group(1).strip() if match else (text or "").strip()


def parse_structured(text: str, model_cls: Type[T]) -> T:
    """把模型回复解析成 model_cls，失败时抛出 pydantic.ValidationError。"""
    return model_cls.model_validate_json(strip_code_fences(text))


def get_structured_response(
    client: ChatClient,
    prompt_or_messages: PromptOrMessages,
    model_cls: Type[T],
    **options: Any,
) -> StructuredResponse[T]:
    messages = _to_messages(prompt_or_messages)
    messages.append(ChatMessage(role="system", content=schema_instruction(model_cls)))
    options.setdefault("response_format", {"type": "json_object"})
    result = client.chat(ChatRequest(messages=messages, **options))
    try:
        parsed = parse_structured(result.text, model_cls)
    except pydantic.ValidationError as e:
        logger.warning(
            "Structured output parse failed",
            extra={"extra": {"model_cls": model_cls.__name__, "error_count": e.error_count()}},
        )
        return StructuredResponse(result=result, error=str(e))
    return StructuredResponse(result=result, parsed=parsed)
