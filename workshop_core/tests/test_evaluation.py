import json
import threading
import time

import pydantic
import pytest

from workshop_core.domain.exceptions import RateLimitError, ValidationError
from workshop_core.domain.models import ChatChoice, ChatMessage, ChatResult
from workshop_core.evaluation import (
    EvalQuestion,
    EvaluationResponse,
    Evaluator,
    ScoreLabel,
    ScoreResponse,
    build_evaluation_clients,
    chatbot_answer_fn,
    load_eval_questions,
)
from workshop_core.pipeline.function_invocation import FunctionInvokingChatClient
from workshop_core.pipeline.retry import RetryingChatClient
from workshop_core.rag.chatbot import Answer, Citation
from workshop_core.rag.products import Product

SCORES = json.dumps(
    {
        "ContextRelevance": {"Justification": "relevant", "ScoreLabel": "Good"},
        "AnswerGroundedness": {"Justification": "grounded", "ScoreLabel": "Perfect"},
        "AnswerCorrectness": {"Justification": "wrong", "ScoreLabel": "Awful"},
    }
)


class EvaluationProvider:
    name = "fake"

    def __init__(self):
        self.prompts = []
        self._lock = threading.Lock()

    def chat(self, req):
        prompt = req.messages[0].content
        with self._lock:
            self.prompts.append(prompt)
        text = "not json" if "<question>Q2</question>" in prompt else SCORES
        msg = ChatMessage(role="assistant", content=text)
        return ChatResult(provider="fake", model="m", choices=[ChatChoice(index=0, message=msg)])


class SettingsStub:
    max_tool_rounds = 20
    retry_max_attempts = 3


def question(i):
    return EvalQuestion(question_id=i, product_id=1, question=f"Q{i}", answer=f"A{i}")


def test_score_labels():
    assert [label.score for label in ScoreLabel] == [0.0, 0.3, 0.7, 1.0]
    parsed = EvaluationResponse.model_validate_json(SCORES)
    assert parsed.populated
    assert parsed.context_relevance.score_number == 0.7
    assert not EvaluationResponse().populated


def test_scores_accept_camel_case_and_any_label_case():
    reply = json.dumps(
        {
            "contextRelevance": {"justification": "ok", "scoreLabel": "good"},
            "answerGroundedness": {"justification": "ok", "scoreLabel": "PERFECT"},
            "answer_correctness": {"Justification": "ok", "ScoreLabel": " poor "},
        }
    )
    parsed = EvaluationResponse.model_validate_json(reply)
    assert parsed.populated
    assert parsed.context_relevance.score_label is ScoreLabel.GOOD
    assert parsed.answer_groundedness.score_label is ScoreLabel.PERFECT
    assert parsed.answer_correctness.score_number == 0.3
    assert json.loads(parsed.model_dump_json(by_alias=True))["ContextRelevance"]["ScoreLabel"] == "Good"


def test_unknown_score_label_is_rejected():
    with pytest.raises(pydantic.ValidationError):
        ScoreResponse.model_validate({"ScoreLabel": "Great"})


def test_evaluator_averages_and_skips_unparseable():
    provider = EvaluationProvider()
    output = []
    evaluator = Evaluator(
        lambda q: Answer(text=f"answer {q.question_id}", citation=Citation(1, 2, "manual quote")),
        provider,
        parallelism=2,
        output_fn=output.append,
    )
    averages = evaluator.run([question(1), question(2), question(3)])
    assert averages.count == 2
    assert averages.averages() == pytest.approx({"context_relevance": 0.7, "groundedness": 1.0, "correctness": 0.0})
    assert output[-1] == "Average: Context relevance 0.70, Groundedness 1.00, Correctness 0.00 after 2 questions"
    assert any("<context>manual quote</context>" in p for p in provider.prompts)
    assert any("<truth>A1</truth>" in p for p in provider.prompts)


def test_evaluator_respects_parallelism():
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}

    def answer_fn(q):
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        time.sleep(0.05)
        with lock:
            state["active"] -= 1
        return Answer(text=f"answer {q.question_id}")

    averages = Evaluator(answer_fn, EvaluationProvider(), parallelism=2).run([question(i) for i in (1, 3, 4, 5, 6, 7)])
    assert averages.count == 6
    assert 1 <= state["peak"] <= 2


def test_evaluator_skips_failed_answers():
    def answer_fn(q):
        raise RateLimitError(code="RATE_LIMIT", message="busy", http_status=429)

    averages = Evaluator(answer_fn, EvaluationProvider(), parallelism=1).run([question(1)])
    assert averages.count == 0
    assert averages.summary().endswith("after 0 questions")


def test_unknown_product_is_skipped_as_business_error():
    products = [Product(product_id=7, brand="Rivermark", model="TrailMate 2")]
    answer_fn = chatbot_answer_fn(EvaluationProvider(), None, None, products)
    with pytest.raises(ValidationError) as exc:
        answer_fn(question(1))
    assert exc.value.code == "UNKNOWN_PRODUCT"

    averages = Evaluator(answer_fn, EvaluationProvider(), parallelism=2).run([question(1), question(3)])
    assert averages.count == 0


def test_evaluator_without_citation_uses_empty_context():
    provider = EvaluationProvider()
    Evaluator(lambda q: Answer(text="x"), provider, parallelism=1).run([question(1)])
    assert "<context></context>" in provider.prompts[0]


def test_build_evaluation_clients():
    provider = EvaluationProvider()
    chatbot_client, evaluation_client = build_evaluation_clients(provider, SettingsStub())
    assert isinstance(chatbot_client, FunctionInvokingChatClient)
    assert isinstance(chatbot_client.inner, RetryingChatClient)
    assert chatbot_client.inner.inner is provider
    assert isinstance(evaluation_client, RetryingChatClient)
    assert evaluation_client.inner is provider


def test_load_eval_questions(tmp_path):
    path = tmp_path / "evalquestions.json"
    path.write_text(
        json.dumps([{"QuestionId": 3, "ProductId": 1, "Question": "How?", "Answer": "Like this."}]),
        encoding="utf-8",
    )
    assert load_eval_questions(path) == [EvalQuestion(question_id=3, product_id=1, question="How?", answer="Like this.")]
