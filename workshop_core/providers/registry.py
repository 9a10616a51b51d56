"""Provider 配置。

集中维护每个 Provider 的默认端点、默认模型与认证方式，
上层只需通过配置中的 ai_provider 选择，具体地址由这里给出默认值。
"""

from dataclasses import dataclass
from typing import Literal, Mapping

AuthStyle = Literal["bearer", "api-key", "none"]


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    default_model: str
    auth: AuthStyle


# GitHub Models 与 OpenAI 接口兼容
GITHUB_CONFIG = ProviderConfig(
    name="github",
    base_url="https://models.inference.ai.azure.com",
    default_model="gpt-4o-mini",
    auth="bearer",
)

OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    default_model="gpt-4o-mini",
    auth="bearer",
)

# Azure OpenAI 没有通用地址，端点必须由配置提供；default_model 对应 deployment 名
AZURE_CONFIG = ProviderConfig(
    name="azure",
    base_url="",
    default_model="gpt-4o-mini",
    auth="api-key",
)

OLLAMA_CONFIG = ProviderConfig(
    name="ollama",
    base_url="http://127.0.0.1:11434",
    default_model="llama3.1",
    auth="none",
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "github": GITHUB_CONFIG,
    "openai": OPENAI_CONFIG,
    "azure": AZURE_CONFIG,
    "ollama": OLLAMA_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
