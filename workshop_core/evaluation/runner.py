"""评估循环：并行地让聊天机器人回答问题，再由评估模型打分并累计平均分。

三个指标：
- context relevance 低：检索到的上下文没有帮助（需要改进检索）；
- groundedness 低：回答没有依据上下文（可能在编造）；
- correctness 低：回答与标准答案不符。
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from workshop_core.domain.exceptions import BusinessError
from workshop_core.infrastructure.logging.logger import logger
from workshop_core.pipeline.builder import ChatClientBuilder
from workshop_core.pipeline.responses import get_structured_response
from workshop_core.prompts import render_prompt
from workshop_core.providers.base import ChatClient
from workshop_core.rag.chatbot import Answer, ChatbotThread
from workshop_core.rag.products import Product, get_current_product

from .models import EvalQuestion, EvaluationResponse

AnswerFn = Callable[[EvalQuestion], Answer]


@dataclass
class RunningAverages:
    count: int = 0
    context_relevance: float = 0.0
    answer_groundedness: float = 0.0
    answer_correctness: float = 0.0

    def add(self, score: EvaluationResponse) -> None:
        self.count += 1
        self.context_relevance += score.context_relevance.score_number
        self.answer_groundedness += score.answer_groundedness.score_number
        self.answer_correctness += score.answer_correctness.score_number

    def averages(self) -> dict:
        if not self.count:
            return {"context_relevance": 0.0, "groundedness": 0.0, "correctness": 0.0}
        return {
            "context_relevance": self.context_relevance / self.count,
            "groundedness": self.answer_groundedness / self.count,
            "correctness": self.answer_correctness / self.count,
        }

    def summary(self) -> str:
        avg = self.averages()
        return (
            f"Average: Context relevance {avg['context_relevance']:.2f}, "
            f"Groundedness {avg['groundedness']:.2f}, "
            f"Correctness {avg['correctness']:.2f} after {self.count} questions"
        )


class Evaluator:
    def __init__(
        self,
        answer_fn: AnswerFn,
        evaluation_client: ChatClient,
        parallelism: int = 2,
        output_fn: Optional[Callable[[str], None]] = None,
    ):
        self._answer_fn = answer_fn
        self._evaluation_client = evaluation_client
        self.parallelism = max(1, parallelism)
        self._output_fn = output_fn
        self._lock = threading.Lock()
        self.averages = RunningAverages()

    def run(self, questions: Iterable[EvalQuestion]) -> RunningAverages:
        with ThreadPoolExecutor(max_workers=self.parallelism) as pool:
            futures = [pool.submit(self._evaluate_one, q) for q in questions]
            for future in futures:
                # 让任务中的非业务异常向上抛出
                future.result()
        return self.averages

    def _evaluate_one(self, question: EvalQuestion) -> Optional[EvaluationResponse]:
        logger.info("evaluation.asking", extra={"extra": {"question_id": question.question_id}})
        try:
            answer = self._answer_fn(question)
            prompt = render_prompt(
                "evaluation",
                question=question.question,
                truth=question.answer,
                context=answer.citation.quote if answer.citation else "",
                answer=answer.text,
            )
            response = get_structured_response(self._evaluation_client, prompt, EvaluationResponse)
        except BusinessError as e:
            logger.warning(
                "evaluation.failed",
                extra={"extra": {"question_id": question.question_id, "code": e.code, "error": e.message}},
            )
            return None
        if not response.ok or not response.parsed.populated:
            logger.warning("evaluation.unscored", extra={"extra": {"question_id": question.question_id}})
            return None

        score = response.parsed
        with self._lock:
            self.averages.add(score)
            summary = self.averages.summary()
            logger.info(
                "evaluation.scored",
                extra={"extra": {"question_id": question.question_id, **self.averages.averages()}},
            )
            if self._output_fn:
                self._output_fn(score.model_dump_json(by_alias=True, indent=2))
                self._output_fn(summary)
        return score


def build_evaluation_clients(inner: ChatClient, cfg) -> tuple:
    """返回 (chatbot_client, evaluation_client)，两者共享同一个底层 client。"""

    chatbot_client = (
        ChatClientBuilder(inner)
        .use_function_invocation(max_rounds=cfg.max_tool_rounds)
        .use_retry_on_rate_limit(max_attempts=cfg.retry_max_attempts)
        .build()
    )
    evaluation_client = (
        ChatClientBuilder(inner)
        .use_retry_on_rate_limit(max_attempts=cfg.retry_max_attempts)
        .build()
    )
    return chatbot_client, evaluation_client


def chatbot_answer_fn(
    chat_client: ChatClient,
    embedding_generator,
    qdrant_client,
    products: List[Product],
    collection: str = "manuals",
    output_fn: Optional[Callable[[str], None]] = None,
) -> AnswerFn:
    """每个问题新开一个 ChatbotThread；问题引用未知产品时抛出 ValidationError(UNKNOWN_PRODUCT)。"""

    def answer(question: EvalQuestion) -> Answer:
        if output_fn:
            output_fn(f"Asking question {question.question_id}...")
        thread = ChatbotThread(
            chat_client,
            embedding_generator,
            qdrant_client,
            get_current_product(products, question.product_id),
            collection=collection,
        )
        return thread.answer(question.question)

    return answer
