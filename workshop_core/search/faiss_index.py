"""基于 FAISS HNSW 索引的语义检索，索引持久化到本地文件。"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

import faiss
import numpy as np

from workshop_core.domain.exceptions import ValidationError
from workshop_core.embeddings.base import EmbeddingGenerator
from workshop_core.infrastructure.logging.logger import logger

from .datasets import GitHubIssue

INDEX_FACTORY = "IDMap2,HNSW32"
CHUNK_SIZE = 1000


@dataclass
class SearchHit:
    distance: float
    issue_number: int
    title: str


class FaissSemanticSearch:
    def __init__(self, generator: EmbeddingGenerator, issues: Sequence[GitHubIssue], dimension: int = 384):
        self._generator = generator
        self._issues: Dict[int, GitHubIssue] = {issue.number: issue for issue in issues}
        self.dimension = dimension
        self.index = None

    def load_or_create_index(self, path: Union[str, Path]):
        path = Path(path)
        if path.exists():
            self.index = faiss.read_index(str(path))
            logger.info("faiss.index_loaded", extra={"extra": {"path": str(path), "count": self.index.ntotal}})
            return self.index

        index = faiss.index_factory(self.dimension, INDEX_FACTORY, faiss.METRIC_INNER_PRODUCT)
        issues = list(self._issues.values())
        for start in range(0, len(issues), CHUNK_SIZE):
            chunk = issues[start:start + CHUNK_SIZE]
            logger.info(
                "faiss.embedding_chunk",
                extra={"extra": {"first": chunk[0].number, "last": chunk[-1].number, "size": len(chunk)}},
            )
            vectors = self._generator.generate([issue.title for issue in chunk])
            matrix = np.vstack(vectors).astype(np.float32)
            if matrix.shape[1] != self.dimension:
                raise ValidationError(
                    code="EMBEDDING_DIMENSION_MISMATCH",
                    message=f"expected dimension {self.dimension}, got {matrix.shape[1]}",
                )
            ids = np.asarray([issue.number for issue in chunk], dtype=np.int64)
            index.add_with_ids(matrix, ids)

        path.parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(index, str(path))
        logger.info("faiss.index_saved", extra={"extra": {"path": str(path), "count": index.ntotal}})
        self.index = index
        return index

    def search(self, query: str, k: int = 3) -> Tuple[List[SearchHit], float]:
        """返回命中列表与检索耗时（毫秒，不含 embedding 时间）。"""

        if self.index is None:
            raise ValidationError(code="INDEX_NOT_BUILT", message="Call load_or_create_index() before search()")
        query_vector = np.asarray(self._generator.generate_vector(query), dtype=np.float32).reshape(1, -1)
        start = time.perf_counter()
        distances, ids = self.index.search(query_vector, k)
        elapsed_ms = (time.perf_counter() - start) * 1000
        hits = []
        for distance, issue_id in zip(distances[0], ids[0]):
            # 结果不足 k 条时 FAISS 用 -1 填充
            if issue_id < 0:
                continue
            issue = self._issues.get(int(issue_id))
            hits.append(SearchHit(float(distance), int(issue_id), issue.title if issue else ""))
        return hits, elapsed_ms
