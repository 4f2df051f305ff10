"""HTTP client for the remote answer store.

Every call makes exactly one attempt and resolves to a :class:`StoreResult`.
Transport errors, non-2xx responses and payloads that do not match the wire
schema are reported as failures rather than raised.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from ..core.interfaces import PersistMethod, StoreResult
from ..core.models import Answer
from ..core.settings import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .schemas import AnswerPayload, QuestionPayload

__all__ = ["AnswerStoreClient"]

logger = logging.getLogger(__name__)

_QUESTIONS = TypeAdapter(list[QuestionPayload])
_ANSWERS = TypeAdapter(list[AnswerPayload])


class AnswerStoreClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> AnswerStoreClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, *, json: Any = None) -> StoreResult[Any]:
        try:
            response = self._client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("%s %s returned %s", method, path, exc.response.status_code)
            return StoreResult.failure(f"{method} {path} returned {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return StoreResult.failure(f"{method} {path} failed: {exc.__class__.__name__}")
        if not response.content:
            return StoreResult.success(None)
        try:
            return StoreResult.success(response.json())
        except ValueError:
            logger.warning("%s %s returned a non-JSON body", method, path)
            return StoreResult.failure(f"{method} {path} returned a non-JSON body")

    def fetch_questions(self) -> StoreResult[list[QuestionPayload]]:
        result = self._request("GET", "/questions")
        if not result.ok:
            return result
        try:
            questions = _QUESTIONS.validate_python(result.value or [])
        except ValidationError as exc:
            logger.warning("GET /questions returned an invalid payload: %s", exc.error_count())
            return StoreResult.failure("GET /questions returned an invalid payload")
        logger.debug("fetched %d questions", len(questions))
        return StoreResult.success(questions)

    def fetch_answers(self) -> StoreResult[list[Answer]]:
        result = self._request("GET", "/answers")
        if not result.ok:
            return result
        try:
            payloads = _ANSWERS.validate_python(result.value or [])
        except ValidationError as exc:
            logger.warning("GET /answers returned an invalid payload: %s", exc.error_count())
            return StoreResult.failure("GET /answers returned an invalid payload")
        logger.debug("fetched %d answers", len(payloads))
        return StoreResult.success([payload.to_answer() for payload in payloads])

    def create_answer(self, answer: Answer) -> StoreResult[None]:
        body = AnswerPayload.from_answer(answer).to_dict()
        result = self._request("POST", "/answers", json=body)
        if result.ok:
            logger.debug("created answer", extra={"question_id": answer.question_id})
            return StoreResult.success(None)
        return result

    def update_answer(self, answer: Answer) -> StoreResult[None]:
        body = AnswerPayload.from_answer(answer).to_dict()
        result = self._request("PUT", f"/answers/{answer.question_id}", json=body)
        if result.ok:
            logger.debug("updated answer", extra={"question_id": answer.question_id})
            return StoreResult.success(None)
        return result

    def upsert_answer(self, answer: Answer, method: PersistMethod = PersistMethod.CREATE) -> StoreResult[None]:
        if method is PersistMethod.UPDATE:
            return self.update_answer(answer)
        return self.create_answer(answer)
