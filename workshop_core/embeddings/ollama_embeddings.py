"""Ollama embedding 适配器。

- URL: {base_url}/api/embed
- 请求体: {"model": ..., "input": [...]}
- 响应体: {"embeddings": [[...], ...]}，顺序与 input 一致
"""

from typing import List, Sequence

import httpx
import numpy as np

from workshop_core.domain.exceptions import ApiError, NetworkError
from workshop_core.providers.registry import OLLAMA_CONFIG


class OllamaEmbeddingGenerator:
    name = "ollama"

    def __init__(self, settings, model=None):
        self._settings = settings
        self.model = model or getattr(settings, "embedding_model", None) or "all-minilm"

    @property
    def base_url(self) -> str:
        return (getattr(self._settings, "ollama_base_url", None) or OLLAMA_CONFIG.base_url).rstrip("/")

    def generate(self, texts: Sequence[str]) -> List[np.ndarray]:
        if not texts:
            return []
        payload = {"model": self.model, "input": list(texts)}
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(f"{self.base_url}/api/embed", json=payload)
        except httpx.TimeoutException as e:
            raise NetworkError(code="TIMEOUT", message=str(e) or "request timed out", provider=self.name)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        vectors = resp.json().get("embeddings") or []
        if len(vectors) != len(texts):
            raise ApiError(
                code="EMBEDDING_COUNT_MISMATCH",
                message=f"expected {len(texts)} embeddings, got {len(vectors)}",
                http_status=502,
            )
        return [np.asarray(v, dtype=np.float32) for v in vectors]

    def generate_vector(self, text: str) -> np.ndarray:
        return self.generate([text])[0]
