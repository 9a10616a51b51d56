"""Ollama Provider 适配器。

使用本地 Ollama 服务的原生对话端点：
- URL: {base_url}/api/chat（stream=false）
- 认证: 无

与 OpenAI 接口的差异：
- 采样参数放在 options 中（max_tokens 对应 num_predict）。
- 工具调用没有 id，arguments 直接是对象而非 JSON 字符串。
- 结构化输出通过 format="json" 开启。
"""

from typing import Any, Dict, List
from uuid import uuid4

import httpx

from workshop_core.domain.exceptions import ApiError, NetworkError, RateLimitError
from workshop_core.domain.models import ChatChoice, ChatMessage, ChatRequest, ChatResult, ChatUsage
from workshop_core.providers.registry import OLLAMA_CONFIG
from workshop_core.tools.definitions import ToolCall, ToolDef


class OllamaChatClient:
    """Ollama Provider 客户端实现。"""

    name = "ollama"

    def __init__(self, settings):
        self._settings = settings

    @property
    def base_url(self) -> str:
        return (getattr(self._settings, "ollama_base_url", None) or OLLAMA_CONFIG.base_url).rstrip("/")

    @property
    def default_model(self) -> str:
        return getattr(self._settings, "ollama_chat_model", None) or OLLAMA_CONFIG.default_model

    def chat(self, req: ChatRequest) -> ChatResult:
        model = req.model or self.default_model
        payload = self._build_payload(req, model)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(f"{self.base_url}/api/chat", json=payload)
        except httpx.TimeoutException as e:
            raise NetworkError(code="TIMEOUT", message=str(e) or "request timed out", provider=self.name)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Ollama rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        return self._parse_response(resp.json(), model)

    def _build_payload(self, req: ChatRequest, model: str) -> dict:
        options: Dict[str, Any] = {}
        if req.temperature is not None:
            options["temperature"] = req.temperature
        if req.top_p is not None:
            options["top_p"] = req.top_p
        if req.max_tokens:
            options["num_predict"] = req.max_tokens
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [self._message_to_payload(m) for m in req.messages],
            "stream": False,
        }
        if options:
            payload["options"] = options
        # tool_choice="none" 时不下发工具，Ollama 没有对应开关
        if req.tools and req.tool_choice != "none":
            payload["tools"] = [self._serialize_tool(t) for t in req.tools]
        if req.response_format and str(req.response_format.get("type", "")).startswith("json"):
            payload["format"] = "json"
        return payload

    def _parse_response(self, data: dict, model: str) -> ChatResult:
        msg = data.get("message") or {}
        tool_calls: List[ToolCall] = []
        for call in msg.get("tool_calls") or []:
            func = call.get("function") or {}
            args = func.get("arguments")
            tool_calls.append(
                ToolCall(
                    id=call.get("id") or f"ollama-{uuid4().hex[:12]}",
                    name=func.get("name") or "",
                    arguments=args if isinstance(args, dict) else {},
                )
            )
        message = ChatMessage(
            role=msg.get("role") or "assistant",
            content=msg.get("content") or "",
            tool_calls=tool_calls or None,
        )
        prompt_tokens = data.get("prompt_eval_count", 0) or 0
        completion_tokens = data.get("eval_count", 0) or 0
        return ChatResult(
            provider=self.name,
            model=data.get("model") or model,
            choices=[ChatChoice(index=0, message=message, finish_reason=data.get("done_reason"))],
            usage=ChatUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            raw=data,
        )

    @staticmethod
    def _serialize_tool(tool: ToolDef) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters_schema(),
            },
        }

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role, "content": message.content or ""}
        if message.tool_calls:
            payload["tool_calls"] = [
                {"function": {"name": call.name, "arguments": call.arguments}}
                for call in message.tool_calls
            ]
        return payload
