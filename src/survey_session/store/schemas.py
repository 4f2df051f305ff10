from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.models import Answer

__all__ = ["AnswerPayload", "QuestionPayload"]


class _APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class QuestionPayload(_APIModel):
    id: int
    text: str
    type: str = "text"
    options: list[str] | None = None


class AnswerPayload(_APIModel):
    question_id: int = Field(..., alias="questionId")
    question: str
    answer: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_answer(cls, answer: Answer) -> AnswerPayload:
        return cls(
            question_id=answer.question_id,
            question=answer.question_text,
            answer=answer.value,
            timestamp=answer.timestamp,
        )

    def to_answer(self) -> Answer:
        return Answer(
            question_id=self.question_id,
            question_text=self.question,
            value=self.answer,
            timestamp=self.timestamp,
        )
