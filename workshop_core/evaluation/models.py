from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter

from workshop_core.domain.exceptions import ValidationError
from workshop_core.rag.products import PascalModel


class EvalQuestion(PascalModel):
    question_id: int
    product_id: int
    question: str
    answer: str


def load_eval_questions(path: Union[str, Path]) -> List[EvalQuestion]:
    path = Path(path)
    if not path.exists():
        raise ValidationError(code="DATA_FILE_MISSING", message=f"Data file not found: {path}", path=str(path))
    return TypeAdapter(List[EvalQuestion]).validate_json(path.read_bytes())


class ScoreLabel(str, Enum):
    AWFUL = "Awful"
    POOR = "Poor"
    GOOD = "Good"
    PERFECT = "Perfect"

    @classmethod
    def _missing_(cls, value):
        # 模型回复的标签大小写不固定
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None

    @property
    def score(self) -> float:
        return _SCORES[self]


_SCORES = {
    ScoreLabel.AWFUL: 0.0,
    ScoreLabel.POOR: 0.3,
    ScoreLabel.GOOD: 0.7,
    ScoreLabel.PERFECT: 1.0,
}


class ScoreResponse(PascalModel):
    justification: Optional[str] = None
    score_label: ScoreLabel

    @property
    def score_number(self) -> float:
        return self.score_label.score


class EvaluationResponse(PascalModel):
    context_relevance: Optional[ScoreResponse] = None
    answer_groundedness: Optional[ScoreResponse] = None
    answer_correctness: Optional[ScoreResponse] = None

    @property
    def populated(self) -> bool:
        return (
            self.context_relevance is not None
            and self.answer_groundedness is not None
            and self.answer_correctness is not None
        )
