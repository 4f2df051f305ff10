from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure "src" is on sys.path for imports in tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from survey_session.core.interfaces import PersistMethod, StoreResult  # noqa: E402
from survey_session.core.models import Answer  # noqa: E402
from survey_session.store.schemas import QuestionPayload  # noqa: E402

SURVEY = [
    {"id": 1, "text": "What do you grow?", "type": "text"},
    {"id": 2, "text": "Do you use pesticides?", "type": "choice", "options": ["Yes", "No"]},
    {"id": 3, "text": "What is your name?", "type": "name"},
]


class FakeStore:
    """In-memory answer store recording every call the session makes."""

    def __init__(self, questions: list[dict] | None = None, answers: list[Answer] | None = None) -> None:
        self.questions = [QuestionPayload.model_validate(q) for q in (SURVEY if questions is None else questions)]
        self.answers: dict[int, Answer] = {a.question_id: a for a in (answers or [])}
        self.calls: list[tuple[str, Answer]] = []
        self.fail_questions = False
        self.fail_answers = False
        self.fail_writes = False

    def fetch_questions(self) -> StoreResult:
        if self.fail_questions:
            return StoreResult.failure("GET /questions failed: ConnectError")
        return StoreResult.success(list(self.questions))

    def fetch_answers(self) -> StoreResult:
        if self.fail_answers:
            return StoreResult.failure("GET /answers returned 500")
        return StoreResult.success(list(self.answers.values()))

    def create_answer(self, answer: Answer) -> StoreResult:
        return self._write("create", answer)

    def update_answer(self, answer: Answer) -> StoreResult:
        return self._write("update", answer)

    def upsert_answer(self, answer: Answer, method: PersistMethod = PersistMethod.CREATE) -> StoreResult:
        if method is PersistMethod.UPDATE:
            return self.update_answer(answer)
        return self.create_answer(answer)

    def _write(self, kind: str, answer: Answer) -> StoreResult:
        self.calls.append((kind, answer))
        if self.fail_writes:
            return StoreResult.failure("POST /answers returned 503")
        self.answers[answer.question_id] = answer
        return StoreResult.success(None)


class StepClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self) -> None:
        self.current = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def make_store() -> type[FakeStore]:
    return FakeStore
