"""OpenAI 兼容 embedding 适配器（OpenAI / GitHub Models）。

- URL: {base_url}/embeddings，Authorization: Bearer <key>
- 响应体中的 data[*].index 决定向量顺序
"""

from typing import List, Sequence

import httpx
import numpy as np

from workshop_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from workshop_core.providers.registry import get_provider_config


class OpenAIEmbeddingGenerator:
    def __init__(self, settings, provider: str = "openai", model=None):
        self._settings = settings
        self._config = get_provider_config(provider)
        self.name = self._config.name
        self.model = model or getattr(settings, "embedding_model", None) or "text-embedding-3-small"

    def generate(self, texts: Sequence[str]) -> List[np.ndarray]:
        if not texts:
            return []
        api_key = getattr(self._settings, "ai_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="AI_KEY not set")
        base = (getattr(self._settings, "ai_endpoint", None) or self._config.base_url).rstrip("/")
        payload = {"model": self.model, "input": list(texts)}
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(f"{base}/embeddings", json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkError(code="TIMEOUT", message=str(e) or "request timed out", provider=self.name)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        items = sorted(resp.json().get("data") or [], key=lambda d: d.get("index", 0))
        return [np.asarray(item["embedding"], dtype=np.float32) for item in items]

    def generate_vector(self, text: str) -> np.ndarray:
        return self.generate([text])[0]
