import pytest

from workshop_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from workshop_core.domain.models import ChatMessage, ChatRequest
from workshop_core.providers import create_provider
from workshop_core.providers.ollama_client import OllamaChatClient
from workshop_core.providers.openai_client import OpenAIChatClient
from workshop_core.tools.definitions import ToolCall, ToolDef, ToolParam


class SettingsStub:
    ai_provider = "github"
    ai_endpoint = None
    ai_key = "test-key-123456"
    azure_api_version = "2024-10-21"
    chat_model = "gpt-4o-mini"
    ollama_base_url = "http://127.0.0.1:11434"
    ollama_chat_model = "llama3.1"
    http_timeout = 1.0


class Resp:
    def __init__(self, data=None, status_code=200, headers=None, text=""):
        self._data = data or {}
        self.status_code = status_code
        self.headers = headers or {}
        self.text = text

    def json(self):
        return self._data


def make_client(resp, calls):
    class Client:
        def __init__(self, *a, **kw):
            calls.append({"init": kw})

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, **kw):
            calls.append({"url": url, **kw})
            if isinstance(resp, Exception):
                raise resp
            return resp

    return Client


def completion(message, finish_reason="stop"):
    return {
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
        "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
    }


def test_create_provider_default(monkeypatch):
    monkeypatch.setattr("workshop_core.providers.settings", SettingsStub())
    provider = create_provider()
    assert isinstance(provider, OpenAIChatClient)
    assert provider.name == "github"


def test_create_provider_explicit_ollama(monkeypatch):
    monkeypatch.setattr("workshop_core.providers.settings", SettingsStub())
    assert isinstance(create_provider("ollama"), OllamaChatClient)


def test_openai_client_basic(monkeypatch):
    calls = []
    resp = Resp(completion({"role": "assistant", "content": "ok"}))
    monkeypatch.setattr("httpx.Client", make_client(resp, calls))
    client = OpenAIChatClient(SettingsStub(), provider="github")
    res = client.chat(ChatRequest.from_prompt("hi", temperature=0.2))
    assert res.text == "ok"
    assert res.usage.total_tokens == 5
    post = calls[-1]
    assert post["url"] == "https://models.inference.ai.azure.com/chat/completions"
    assert post["headers"]["Authorization"] == "Bearer test-key-123456"
    assert post["json"]["model"] == "gpt-4o-mini"
    assert post["json"]["temperature"] == 0.2
    assert post["json"]["messages"] == [{"role": "user", "content": "hi"}]


def test_openai_client_azure_endpoint(monkeypatch):
    calls = []
    monkeypatch.setattr("httpx.Client", make_client(Resp(completion({"role": "assistant", "content": "ok"})), calls))
    cfg = SettingsStub()
    cfg.ai_endpoint = "https://example.openai.azure.com/"
    client = OpenAIChatClient(cfg, provider="azure")
    client.chat(ChatRequest.from_prompt("hi"))
    post = calls[-1]
    assert post["url"] == "https://example.openai.azure.com/openai/deployments/gpt-4o-mini/chat/completions"
    assert post["params"] == {"api-version": "2024-10-21"}
    assert post["headers"]["api-key"] == "test-key-123456"


def test_openai_client_tools_and_tool_calls(monkeypatch):
    calls = []
    message = {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "get_price", "arguments": '{"count": 3}'},
            }
        ],
    }
    monkeypatch.setattr("httpx.Client", make_client(Resp(completion(message, "tool_calls")), calls))
    tool = ToolDef(
        name="get_price",
        description="Computes the price of socks",
        params={"count": ToolParam(name="count", description="pairs", required=True, schema={"type": "integer"})},
    )
    client = OpenAIChatClient(SettingsStub())
    res = client.chat(ChatRequest.from_prompt("price?", tools=[tool]))
    sent = calls[-1]["json"]
    assert sent["tool_choice"] == "auto"
    assert sent["tools"][0]["function"]["name"] == "get_price"
    assert sent["tools"][0]["function"]["parameters"]["required"] == ["count"]
    call = res.message.tool_calls[0]
    assert (call.id, call.name, call.arguments) == ("call_1", "get_price", {"count": 3})
    assert res.finish_reason == "tool_calls"


def test_openai_client_serializes_tool_messages(monkeypatch):
    calls = []
    monkeypatch.setattr("httpx.Client", make_client(Resp(completion({"role": "assistant", "content": "ok"})), calls))
    messages = [
        ChatMessage(role="user", content="price?"),
        ChatMessage(role="assistant", content="", tool_calls=[ToolCall(id="c1", name="get_price", arguments={"count": 1})]),
        ChatMessage(role="tool", content="15.99", tool_call_id="c1"),
    ]
    OpenAIChatClient(SettingsStub()).chat(ChatRequest(messages=messages))
    sent = calls[-1]["json"]["messages"]
    assert sent[1]["tool_calls"][0]["function"]["name"] == "get_price"
    assert sent[2]["role"] == "tool"
    assert sent[2]["tool_call_id"] == "c1"


def test_openai_client_rate_limit(monkeypatch):
    resp = Resp(status_code=429, headers={"retry-after": "2"})
    monkeypatch.setattr("httpx.Client", make_client(resp, []))
    with pytest.raises(RateLimitError) as exc:
        OpenAIChatClient(SettingsStub()).chat(ChatRequest.from_prompt("hi"))
    assert exc.value.extra["retry_after"] == "2"


def test_openai_client_api_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client(Resp(status_code=500, text="boom"), []))
    with pytest.raises(ApiError) as exc:
        OpenAIChatClient(SettingsStub()).chat(ChatRequest.from_prompt("hi"))
    assert exc.value.http_status == 500


def test_openai_client_timeout(monkeypatch):
    import httpx

    monkeypatch.setattr("httpx.Client", make_client(httpx.ReadTimeout("slow"), []))
    with pytest.raises(NetworkError) as exc:
        OpenAIChatClient(SettingsStub()).chat(ChatRequest.from_prompt("hi"))
    assert exc.value.code == "TIMEOUT"


def test_openai_client_missing_key():
    cfg = SettingsStub()
    cfg.ai_key = None
    with pytest.raises(ValidationError) as exc:
        OpenAIChatClient(cfg).chat(ChatRequest.from_prompt("hi"))
    assert exc.value.code == "MISSING_API_KEY"


def test_ollama_client_payload_and_tool_calls(monkeypatch):
    calls = []
    data = {
        "model": "llama3.1",
        "message": {
            "role": "assistant",
            "content": "",
            "tool_calls": [{"function": {"name": "get_cart_status", "arguments": {}}}],
        },
        "done_reason": "stop",
        "prompt_eval_count": 7,
        "eval_count": 3,
    }
    monkeypatch.setattr("httpx.Client", make_client(Resp(data), calls))
    tool = ToolDef(name="get_cart_status", description="cart", params={})
    req = ChatRequest.from_prompt("cart?", tools=[tool], max_tokens=20, response_format={"type": "json_object"})
    res = OllamaChatClient(SettingsStub()).chat(req)
    post = calls[-1]
    assert post["url"] == "http://127.0.0.1:11434/api/chat"
    assert post["json"]["stream"] is False
    assert post["json"]["options"] == {"num_predict": 20}
    assert post["json"]["format"] == "json"
    assert post["json"]["tools"][0]["function"]["name"] == "get_cart_status"
    call = res.message.tool_calls[0]
    assert call.name == "get_cart_status"
    assert call.id.startswith("ollama-")
    assert res.usage.total_tokens == 10


def test_ollama_client_omits_tools_when_disabled(monkeypatch):
    calls = []
    data = {"message": {"role": "assistant", "content": "hi"}}
    monkeypatch.setattr("httpx.Client", make_client(Resp(data), calls))
    tool = ToolDef(name="get_cart_status", description="cart", params={})
    res = OllamaChatClient(SettingsStub()).chat(ChatRequest.from_prompt("x", tools=[tool], tool_choice="none"))
    assert "tools" not in calls[-1]["json"]
    assert res.text == "hi"
