from typing import List, Protocol, Sequence

import numpy as np


class EmbeddingGenerator(Protocol):
    """文本向量化接口：每条输入文本对应一个一维 float32 向量。"""

    name: str

    def generate(self, texts: Sequence[str]) -> List[np.ndarray]:
        ...

    def generate_vector(self, text: str) -> np.ndarray:
        ...
