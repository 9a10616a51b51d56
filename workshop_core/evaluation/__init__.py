from workshop_core.evaluation.models import (
    EvalQuestion,
    EvaluationResponse,
    ScoreLabel,
    ScoreResponse,
    load_eval_questions,
)
from workshop_core.evaluation.runner import Evaluator, RunningAverages, build_evaluation_clients, chatbot_answer_fn

__all__ = [
    "EvalQuestion",
    "EvaluationResponse",
    "Evaluator",
    "RunningAverages",
    "ScoreLabel",
    "ScoreResponse",
    "build_evaluation_clients",
    "chatbot_answer_fn",
    "load_eval_questions",
]
