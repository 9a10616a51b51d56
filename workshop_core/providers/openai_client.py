"""OpenAI 兼容 Provider 适配器。

同一个实现覆盖三类端点：

- openai / github: {base_url}/chat/completions，Authorization: Bearer <key>
- azure: {endpoint}/openai/deployments/{model}/chat/completions?api-version=...，
  认证头为 api-key

本模块负责：

1. 接收统一的 ChatRequest。
2. 将其转换为 chat/completions 请求格式（含 tools、response_format）。
3. 调用 HTTP 接口并处理网络/API 异常。
4. 将响应 JSON 解析为统一的 ChatResult / ChatMessage 结构（含工具调用）。
"""

import httpx
import json
from typing import Any, Dict, List

from workshop_core.domain.models import (
    ChatRequest,
    ChatResult,
    ChatMessage,
    ChatChoice,
    ChatUsage,
)
from workshop_core.domain.exceptions import NetworkError, ApiError, RateLimitError, ValidationError
from workshop_core.providers.registry import ProviderConfig, get_provider_config
from workshop_core.tools.definitions import ToolDef, ToolCall


class OpenAIChatClient:
    """OpenAI / GitHub Models / Azure OpenAI 客户端实现。"""

    def __init__(self, settings, provider: str = "github"):
        # Settings 里包含 endpoint、api_key、超时等配置
        self._settings = settings
        self._config: ProviderConfig = get_provider_config(provider)
        self.name = self._config.name

    @property
    def default_model(self) -> str:
        return getattr(self._settings, "chat_model", None) or self._config.default_model

    def chat(self, req: ChatRequest) -> ChatResult:
        """执行一次非流式对话调用。

        步骤：
        1. 确定模型与请求地址。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并捕获网络错误/限流/服务端错误。
        4. 使用统一的解析函数构造 ChatResult。
        """

        api_key = getattr(self._settings, "ai_key", None)
        if not api_key:
            # 配置缺失走 ValidationError，方便上层统一处理
            raise ValidationError(code="MISSING_API_KEY", message="AI_KEY not set")
        model = req.model or self.default_model
        url, params = self._endpoint(model)
        payload = self._build_payload(req, model)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(url, params=params, json=payload, headers=self._headers(api_key))
        except httpx.TimeoutException as e:
            raise NetworkError(code="TIMEOUT", message=str(e) or "request timed out", provider=self.name)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接失败等
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            # 限流错误交给上层的重试中间件做退避
            raise RateLimitError(
                code="RATE_LIMIT",
                message=f"{self.name} rate limit",
                http_status=429,
                retry_after=resp.headers.get("retry-after"),
            )
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        data = resp.json()
        return self._parse_response(data, model)

    def _endpoint(self, model: str):
        if self._config.name == "azure":
            base = (getattr(self._settings, "ai_endpoint", None) or "").rstrip("/")
            if not base:
                raise ValidationError(code="MISSING_ENDPOINT", message="AI_ENDPOINT not set for azure")
            return (
                f"{base}/openai/deployments/{model}/chat/completions",
                {"api-version": self._settings.azure_api_version},
            )
        base = (getattr(self._settings, "ai_endpoint", None) or self._config.base_url).rstrip("/")
        return f"{base}/chat/completions", None

    def _headers(self, api_key: str) -> Dict[str, str]:
        if self._config.auth == "api-key":
            return {"api-key": api_key, "Content-Type": "application/json"}
        return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    def _build_payload(self, req: ChatRequest, model: str) -> dict:
        """将 ChatRequest 转成 chat/completions 所需的请求 JSON。"""

        payload: Dict[str, Any] = {
            "model": model,
            "messages": [self._message_to_payload(m) for m in req.messages],
        }
        if req.temperature is not None:
            payload["temperature"] = req.temperature
        if req.top_p is not None:
            payload["top_p"] = req.top_p
        if req.max_tokens:
            payload["max_tokens"] = req.max_tokens
        if req.response_format:
            payload["response_format"] = req.response_format
        # 工具调用：如果请求中携带了工具定义，则按 function tool 规范转换
        if req.tools:
            payload["tools"] = [self._serialize_tool(tool) for tool in req.tools]
            payload["tool_choice"] = req.tool_choice
        return payload

    def _parse_response(self, data: dict, model: str) -> ChatResult:
        """将原始响应 JSON 解析为统一的 ChatResult。"""

        choices: list[ChatChoice] = []
        for i, ch in enumerate(data.get("choices", [])):
            msg = ch.get("message") or {}
            cm = self._build_chat_message(msg)
            choices.append(ChatChoice(index=ch.get("index", i), message=cm, finish_reason=ch.get("finish_reason")))
        usage_raw = data.get("usage") or {}
        usage = ChatUsage(
            prompt_tokens=usage_raw.get("prompt_tokens", 0),
            completion_tokens=usage_raw.get("completion_tokens", 0),
            total_tokens=usage_raw.get("total_tokens", 0),
        )
        return ChatResult(
            provider=self.name,
            model=data.get("model") or model,
            choices=choices,
            usage=usage,
            raw=data,
        )

    @staticmethod
    def _serialize_tool(tool: ToolDef) -> Dict[str, Any]:
        """把内部的 ToolDef 转成 function tool 描述。"""

        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters_schema(),
            },
        }

    def _build_chat_message(self, payload: Dict[str, Any]) -> ChatMessage:
        """将单条厂商 message 转换为 ChatMessage。

        同时负责把 tool_calls 字段解析为统一的 ToolCall 列表，
        方便函数调用中间件执行工具循环。
        """

        tool_calls_raw = payload.get("tool_calls") or []
        tool_calls: List[ToolCall] = []
        for idx, call in enumerate(tool_calls_raw):
            func = call.get("function") or {}
            name = func.get("name") or call.get("name") or ""
            arguments = self._parse_arguments(func.get("arguments"))
            tool_calls.append(
                ToolCall(
                    id=call.get("id") or f"tool_call_{idx}",
                    name=name,
                    arguments=arguments,
                )
            )

        # 部分兼容端点仍会返回旧版 function_call 字段
        function_call = payload.get("function_call")
        if function_call:
            tool_calls.append(
                ToolCall(
                    id=function_call.get("id") or "function_call",
                    name=function_call.get("name") or "",
                    arguments=self._parse_arguments(function_call.get("arguments")),
                )
            )
        return ChatMessage(
            role=payload.get("role") or "assistant",
            content=payload.get("content") or "",
            tool_calls=tool_calls or None,
            tool_call_id=payload.get("tool_call_id"),
        )

    @staticmethod
    def _parse_arguments(raw: Any) -> Dict[str, Any]:
        """解析工具调用的 arguments 字段。

        OpenAI 会把 arguments 作为 JSON 字符串返回，这里做一层
        json.loads 尝试，失败时保留原始字符串到 `_raw`，避免信息丢失。
        """

        if isinstance(raw, dict):
            return raw
        if isinstance(raw, str):
            if not raw.strip():
                return {}
            try:
                return json.loads(raw)
            except json.JSONDecodeError:
                return {"_raw": raw}
        return {}

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role, "content": message.content or ""}
        if message.tool_calls:
            payload["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments, ensure_ascii=False),
                    },
                }
                for call in message.tool_calls
            ]
        if message.tool_call_id:
            payload["tool_call_id"] = message.tool_call_id
        return payload
