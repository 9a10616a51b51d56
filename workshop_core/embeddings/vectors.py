from typing import Iterable, List, Sequence, Tuple, TypeVar

import numpy as np

from .base import EmbeddingGenerator

T = TypeVar("T", bound=str)


def generate_and_zip(generator: EmbeddingGenerator, values: Iterable[T]) -> List[Tuple[T, np.ndarray]]:
    """批量生成向量，并与原文本一一配对。"""
    items = list(values)
    return list(zip(items, generator.generate(items)))


def dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    va = np.asarray(a, dtype=np.float32)
    vb = np.asarray(b, dtype=np.float32)
    if va.shape != vb.shape:
        raise ValueError(f"vector length mismatch: {va.shape[0]} != {vb.shape[0]}")
    return float(np.dot(va, vb))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = dot_product(a, b)
    norm = float(np.linalg.norm(np.asarray(a, dtype=np.float32)) * np.linalg.norm(np.asarray(b, dtype=np.float32)))
    if norm == 0.0:
        return 0.0
    return dot / norm
