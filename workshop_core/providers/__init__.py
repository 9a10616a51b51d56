"""LLM Provider 集成层。

该包下的模块负责：
- 定义 ChatClient 抽象接口 (base)。
- 维护 Provider 默认端点与模型 (registry)。
- 提供各厂商的具体实现 (openai_client、ollama_client)。
"""

from typing import Optional

from workshop_core.config.settings import settings
from workshop_core.providers.base import ChatClient
from workshop_core.providers.openai_client import OpenAIChatClient
from workshop_core.providers.ollama_client import OllamaChatClient


def create_provider(name: Optional[str] = None, cfg=None) -> ChatClient:
    """根据名称创建 Provider 实例，默认取配置中的 ai_provider。"""

    cfg = cfg or settings
    provider_name = (name or getattr(cfg, "ai_provider", "github")).lower()
    if provider_name == "ollama":
        return OllamaChatClient(cfg)
    return OpenAIChatClient(cfg, provider=provider_name)
