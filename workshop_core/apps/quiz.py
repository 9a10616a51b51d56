"""练习“QuizApp”：由模型出题并判分的问答小测验（控制台版）。"""

from typing import Callable, List, Optional

from workshop_core.domain.exceptions import BusinessError
from workshop_core.pipeline.responses import get_response
from workshop_core.prompts import render_prompt
from workshop_core.providers.base import ChatClient


class QuizSession:
    """一次测验的状态。

    - move_to_next_question(): 当前题目未判分前调用是空操作；
    - submit_answer(): 同一题重复提交是空操作；
    - 判分结果以 CORRECT 开头时得分加一。
    """

    def __init__(self, client: ChatClient, subject: str, num_questions: int = 5):
        self._client = client
        self.subject = subject
        self.num_questions = num_questions
        self.points_scored = 0
        self.current_question_number = 0
        self.current_question_text: Optional[str] = None
        self.current_question_outcome: Optional[str] = None
        self.answer_submitted = False
        self.asked_questions: List[str] = []

    @property
    def previous_questions(self) -> str:
        return "".join(self.asked_questions)

    @property
    def finished(self) -> bool:
        return self.current_question_number >= self.num_questions and bool(self.current_question_outcome)

    @property
    def can_submit(self) -> bool:
        return self.current_question_text is not None and not self.answer_submitted

    def move_to_next_question(self) -> Optional[str]:
        if self.current_question_number > 0 and not self.current_question_outcome:
            return self.current_question_text

        self.current_question_number += 1
        self.current_question_text = None
        self.current_question_outcome = None
        self.answer_submitted = False

        prompt = render_prompt(
            "quiz_question",
            subject=self.subject,
            previous_questions=self.previous_questions,
        )
        self.current_question_text = get_response(self._client, prompt).text
        self.asked_questions.append(self.current_question_text)
        return self.current_question_text

    def submit_answer(self, answer: str) -> Optional[str]:
        if not self.can_submit:
            return self.current_question_outcome
        self.answer_submitted = True

        prompt = render_prompt(
            "quiz_mark",
            subject=self.subject,
            question=self.current_question_text,
            answer=answer.replace("<", ""),
        )
        self.current_question_outcome = get_response(self._client, prompt).text
        if self.current_question_outcome.startswith("CORRECT"):
            self.points_scored += 1
        return self.current_question_outcome


def run_quiz(
    session: QuizSession,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> int:
    try:
        while not session.finished:
            question = session.move_to_next_question()
            output_fn(f"\nQuestion {session.current_question_number} of {session.num_questions}: {question}")
            answer = ""
            while not answer:
                answer = input_fn("Your answer: ").strip()
            output_fn(session.submit_answer(answer) or "")
    except BusinessError as e:
        output_fn(f"[{e.code}] {e.message}")
    except EOFError:
        pass
    output_fn(f"\nYou scored {session.points_scored} out of {session.current_question_number}")
    return session.points_scored
