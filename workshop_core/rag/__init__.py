from workshop_core.rag.chatbot import Answer, ChatBotAnswer, ChatbotThread, Citation, run_chatbot
from workshop_core.rag.products import (
    ManualChunk,
    Product,
    get_current_product,
    load_manual_chunks,
    load_products,
)
from workshop_core.rag.vector_store import create_qdrant_client, ingest_manual_chunks

__all__ = [
    "Answer",
    "ChatBotAnswer",
    "ChatbotThread",
    "Citation",
    "ManualChunk",
    "Product",
    "create_qdrant_client",
    "get_current_product",
    "ingest_manual_chunks",
    "load_manual_chunks",
    "load_products",
    "run_chatbot",
]
