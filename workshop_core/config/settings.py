"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置，优先级依次降低。
字段名与环境变量名一一对应（不区分大小写），例如 ai_key <-> AI_KEY。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("WORKSHOP_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class WorkshopSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Chat Provider ----
    ai_provider: Literal["github", "openai", "azure", "ollama"] = Field(
        default="github",
        description="对话 Provider：github / openai / azure / ollama",
    )
    ai_endpoint: Optional[str] = Field(
        default=None,
        description="Provider 端点，为空时使用 registry 中的默认地址",
    )
    ai_key: Optional[str] = Field(default=None, description="Provider API 密钥")
    azure_api_version: str = Field(default="2024-10-21", description="Azure OpenAI api-version")
    chat_model: str = Field(default="gpt-4o-mini", description="对话模型（Azure 下为 deployment 名）")
    ollama_base_url: str = Field(default="http://127.0.0.1:11434", description="本地 Ollama 服务地址")
    ollama_chat_model: str = Field(default="llama3.1", description="Ollama 对话模型")

    # ---- Embedding ----
    embedding_provider: Literal["ollama", "openai"] = Field(default="ollama")
    embedding_model: str = Field(default="all-minilm", description="Embedding 模型名")
    embedding_dimension: int = Field(default=384, ge=1, description="与 embedding 模型保持一致")

    # ---- Qdrant ----
    qdrant_host: str = Field(default="127.0.0.1")
    qdrant_port: int = Field(default=6334, description="gRPC 端口")
    manuals_collection: str = Field(default="manuals")

    # ---- 运行时 ----
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")
    max_tool_rounds: int = Field(
        default=20,
        ge=1,
        le=20,
        description="单次请求内工具调用最大轮数（硬上限 20）",
    )
    rate_limit_window_seconds: float = Field(default=5.0, gt=0, description="全局限流窗口（秒）")
    retry_max_attempts: int = Field(default=5, ge=1, description="遇到 429 时的最大尝试次数")
    reply_language: str = Field(default="French", description="UseLanguage 中间件的目标语言")

    # ---- 练习数据 ----
    data_dir: str = Field(default="data", description="练习数据目录")
    faiss_index_path: str = Field(default="index_hnsw.bin")
    faiss_dataset_size: int = Field(default=10000, ge=1, description="FAISS 练习索引的 issue 数量")
    eval_parallelism: int = Field(default=2, ge=1, le=16)
    quiz_subject: str = Field(default="Python Language")
    current_product_id: Optional[int] = Field(default=None, description="RAG 聊天机器人当前产品")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("ai_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


settings = WorkshopSettings()
