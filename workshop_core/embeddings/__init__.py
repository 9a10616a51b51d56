"""文本向量化。

- base: EmbeddingGenerator 协议。
- ollama_embeddings / openai_embeddings: 具体实现。
- vectors: generate_and_zip、点积与余弦相似度。
"""

from typing import Optional

from workshop_core.config.settings import settings
from workshop_core.embeddings.base import EmbeddingGenerator
from workshop_core.embeddings.ollama_embeddings import OllamaEmbeddingGenerator
from workshop_core.embeddings.openai_embeddings import OpenAIEmbeddingGenerator
from workshop_core.embeddings.vectors import cosine_similarity, dot_product, generate_and_zip


def create_embedding_generator(cfg=None, provider: Optional[str] = None) -> EmbeddingGenerator:
    """根据 embedding_provider 创建向量生成器。"""

    cfg = cfg or settings
    name = (provider or getattr(cfg, "embedding_provider", "ollama")).lower()
    if name == "ollama":
        return OllamaEmbeddingGenerator(cfg)
    return OpenAIEmbeddingGenerator(cfg, provider=name)


__all__ = [
    "EmbeddingGenerator",
    "OllamaEmbeddingGenerator",
    "OpenAIEmbeddingGenerator",
    "cosine_similarity",
    "create_embedding_generator",
    "dot_product",
    "generate_and_zip",
]
