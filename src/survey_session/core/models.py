from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class QuestionKind(str, Enum):
    TEXT = "text"
    CHOICE = "choice"
    # Answered through two prompts (first name, then last name) joined by a space.
    COMPOSITE_NAME = "name"


class Mode(str, Enum):
    ASKING = "asking"
    REVIEWING = "reviewing"
    EDITING = "editing"
    COMPLETE = "complete"
    EXITING = "exiting"


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    kind: QuestionKind = QuestionKind.TEXT
    options: tuple[str, ...] = ()

    @property
    def is_composite(self) -> bool:
        return self.kind is QuestionKind.COMPOSITE_NAME


@dataclass(frozen=True)
class Answer:
    question_id: int
    # Snapshot of the question text at answer time, not a live reference.
    question_text: str
    value: str
    timestamp: datetime


@dataclass(frozen=True)
class InputBuffers:
    """In-progress input for a single prompt.

    ``value`` holds free text or the selected option.  Composite-name prompts
    use ``first_name``/``last_name`` and ``awaiting_last_name`` tracks which of
    the two sub-prompts is showing.
    """

    value: str = ""
    first_name: str = ""
    last_name: str = ""
    awaiting_last_name: bool = False


EMPTY_BUFFERS = InputBuffers()


@dataclass(frozen=True)
class SessionState:
    questions: tuple[Question, ...]
    current_index: int = 0
    answers: tuple[Answer, ...] = ()
    mode: Mode = Mode.ASKING
    review_index: int = 0
    inputs: InputBuffers = field(default_factory=InputBuffers)
    edit_inputs: InputBuffers = field(default_factory=InputBuffers)
    # Sticky advisory message from a failed store call.
    error: str | None = None

    @property
    def current_question(self) -> Question | None:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def reviewed_answer(self) -> Answer | None:
        if self.mode in (Mode.REVIEWING, Mode.EDITING) and 0 <= self.review_index < len(self.answers):
            return self.answers[self.review_index]
        return None

    def answer_for(self, question_id: int) -> Answer | None:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None

    def question_by_id(self, question_id: int) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


def split_name(value: str) -> tuple[str, str]:
    """Split a stored composite-name value on its first space."""

    first, _, last = value.partition(" ")
    return first, last


def join_name(first: str, last: str) -> str:
    return f"{first} {last}"
