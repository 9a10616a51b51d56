"""练习“Corrective RAG”：基于产品手册回答客服问题并给出引用。

每个 ChatbotThread 对应一个产品的一段对话：
1. 对用户问题做 embedding，在 manuals 集合中按 productId 过滤取最近的若干分块；
2. 把分块以 <manual_extract id=...> 形式拼进提示词，追加到线程历史；
3. 要求模型返回结构化的 ChatBotAnswer；
4. 只有当模型引用的 ManualExtractId 属于本次检索结果时才生成引用。
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from qdrant_client.models import ScoredPoint

from workshop_core.domain.conversation import ChatHistory
from workshop_core.domain.exceptions import BusinessError
from workshop_core.embeddings.base import EmbeddingGenerator
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.pipeline.responses import get_structured_response
from workshop_core.prompts import render_prompt
from workshop_core.providers.base import ChatClient

from .products import PascalModel, Product
from .vector_store import search_manual_chunks

FALLBACK_ANSWER = "Sorry, there was a problem."


class ChatBotAnswer(PascalModel):
    manual_extract_id: Optional[int] = None
    manual_quote: Optional[str] = None
    answer_text: str


@dataclass
class Citation:
    product_id: int
    page_number: int
    quote: str

    def __str__(self) -> str:
        return f"CITATION: {self.product_id}.pdf page {self.page_number}: {self.quote}"


@dataclass
class Answer:
    text: str
    citation: Optional[Citation] = None


class ChatbotThread:
    def __init__(
        self,
        chat_client: ChatClient,
        embedding_generator: EmbeddingGenerator,
        qdrant_client,
        product: Product,
        collection: str = "manuals",
        limit: int = 5,
    ):
        self._chat_client = chat_client
        self._embedding_generator = embedding_generator
        self._qdrant_client = qdrant_client
        self.product = product
        self.collection = collection
        self.limit = limit
        self.history = ChatHistory(
            render_prompt(
                "rag_system",
                product_id=product.product_id,
                brand=product.brand,
                model=product.model,
            )
        )

    def answer(self, question: str) -> Answer:
        vector = self._embedding_generator.generate_vector(question)
        chunks = search_manual_chunks(
            self._qdrant_client,
            self.collection,
            vector,
            self.product.product_id,
            limit=self.limit,
        )
        extracts = "\n".join(
            f"<manual_extract id='{chunk.id}'>{(chunk.payload or {}).get('text', '')}</manual_extract>"
            for chunk in chunks
        )
        self.history.add_user(render_prompt("rag_question", extracts=extracts, question=question))

        response = get_structured_response(self._chat_client, self.history.messages, ChatBotAnswer)
        self.history.add_result(response.result)
        if not response.ok:
            logger.warning(
                "chatbot.unparseable_answer",
                extra={"extra": {"product_id": self.product.product_id, "error": response.error}},
            )
            return Answer(text=FALLBACK_ANSWER)
        return Answer(text=response.parsed.answer_text, citation=self._citation(response.parsed, chunks))

    @staticmethod
    def _citation(answer: ChatBotAnswer, chunks: List[ScoredPoint]) -> Optional[Citation]:
        if answer.manual_extract_id is None:
            return None
        for chunk in chunks:
            if str(chunk.id) == str(answer.manual_extract_id):
                payload = chunk.payload or {}
                return Citation(
                    product_id=int(payload["productId"]),
                    page_number=int(payload["pageNumber"]),
                    quote=answer.manual_quote or "",
                )
        return None


def run_chatbot(
    thread: ChatbotThread,
    product: Product,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    output_fn(f"Assistant: Hi! You're looking at the {product.model}. What do you want to know about it?")
    while True:
        try:
            question = input_fn("\nYou: ").strip()
        except EOFError:
            break
        if not question:
            continue
        if question.lower() in {"exit", "quit"}:
            break
        try:
            answer = thread.answer(question)
        except BusinessError as e:
            output_fn(f"[{e.code}] {e.message}")
            continue
        output_fn(f"Assistant: {answer.text}\n")
        if answer.citation is not None:
            output_fn(str(answer.citation))
