from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

from .models import Answer

if TYPE_CHECKING:
    from ..store.schemas import QuestionPayload

T = TypeVar("T")


class PersistMethod(str, Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a single store call; failures are values, never raised."""

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> StoreResult[Any]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> StoreResult[Any]:
        return cls(ok=False, error=error)


class AnswerStore(Protocol):
    def fetch_questions(self) -> StoreResult[Sequence[QuestionPayload]]: ...

    def fetch_answers(self) -> StoreResult[Sequence[Answer]]: ...

    def create_answer(self, answer: Answer) -> StoreResult[None]: ...

    def update_answer(self, answer: Answer) -> StoreResult[None]: ...

    def upsert_answer(self, answer: Answer, method: PersistMethod = PersistMethod.CREATE) -> StoreResult[None]: ...
