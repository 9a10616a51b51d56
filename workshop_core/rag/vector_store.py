"""Qdrant 相关操作：连接、建集合、写入手册分块、按产品过滤检索。"""

from typing import Iterable, List, Sequence

from qdrant_client import QdrantClient
from qdrant_client.models import Distance, FieldCondition, Filter, MatchValue, PointStruct, ScoredPoint, VectorParams

from workshop_core.embeddings.base import EmbeddingGenerator
from workshop_core.infrastructure.logging.logger import logger

from .products import ManualChunk


def create_qdrant_client(cfg) -> QdrantClient:
    return QdrantClient(host=cfg.qdrant_host, grpc_port=cfg.qdrant_port, prefer_grpc=True)


def product_filter(product_id: int) -> Filter:
    return Filter(must=[FieldCondition(key="productId", match=MatchValue(value=product_id))])


def search_manual_chunks(
    qdrant_client: QdrantClient,
    collection: str,
    vector: Sequence[float],
    product_id: int,
    limit: int = 5,
) -> List[ScoredPoint]:
    response = qdrant_client.query_points(
        collection_name=collection,
        query=[float(v) for v in vector],
        query_filter=product_filter(product_id),
        limit=limit,
        with_payload=True,
    )
    return list(response.points)


def ensure_collection(qdrant_client: QdrantClient, collection: str, dimension: int) -> bool:
    """集合不存在时按余弦距离创建，返回是否新建。"""

    if qdrant_client.collection_exists(collection):
        return False
    qdrant_client.create_collection(
        collection_name=collection,
        vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
    )
    logger.info("qdrant.collection_created", extra={"extra": {"collection": collection, "dimension": dimension}})
    return True


def ingest_manual_chunks(
    generator: EmbeddingGenerator,
    qdrant_client: QdrantClient,
    chunks: Iterable[ManualChunk],
    collection: str,
    dimension: int,
    batch_size: int = 64,
) -> int:
    ensure_collection(qdrant_client, collection, dimension)
    items = list(chunks)
    total = 0
    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        vectors = generator.generate([chunk.text for chunk in batch])
        points = [
            PointStruct(
                id=chunk.chunk_id,
                vector=[float(v) for v in vector],
                payload={"productId": chunk.product_id, "pageNumber": chunk.page_number, "text": chunk.text},
            )
            for chunk, vector in zip(batch, vectors)
        ]
        qdrant_client.upsert(collection_name=collection, points=points)
        total += len(points)
        logger.info("qdrant.upserted", extra={"extra": {"collection": collection, "batch": len(points), "total": total}})
    return total
