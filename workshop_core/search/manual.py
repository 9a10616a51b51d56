from typing import List, Sequence, Tuple

import numpy as np

from workshop_core.domain.exceptions import ValidationError
from workshop_core.embeddings.base import EmbeddingGenerator
from workshop_core.embeddings.vectors import dot_product, generate_and_zip


class ManualSemanticSearch:
    """在内存中对全部标题做暴力点积检索。"""

    def __init__(self, generator: EmbeddingGenerator, titles: Sequence[str]):
        self._generator = generator
        self._titles = list(titles)
        self._entries: List[Tuple[str, np.ndarray]] = []
        self._indexed = False

    @property
    def indexed(self) -> bool:
        return self._indexed

    def index(self) -> int:
        self._entries = generate_and_zip(self._generator, self._titles)
        self._indexed = True
        return len(self._entries)

    def search(self, query: str, top: int = 3) -> List[Tuple[float, str]]:
        if not self.indexed:
            raise ValidationError(code="INDEX_NOT_BUILT", message="Call index() before search()")
        if not self._entries:
            return []
        query_vector = self._generator.generate_vector(query)
        scored = [(dot_product(vector, query_vector), title) for title, vector in self._entries]
        # sorted 是稳定排序，相似度相同时保持原始顺序
        scored.sort(key=lambda item: item[0], reverse=True)
        return scored[:top]
