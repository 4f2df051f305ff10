from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from .errors import CatalogError
from .models import Answer, Question, QuestionKind

if TYPE_CHECKING:
    from ..store.schemas import QuestionPayload
    from .interfaces import AnswerStore

__all__ = ["build_catalog", "load_catalog", "seed_answers"]

logger = logging.getLogger(__name__)

_KINDS = {kind.value: kind for kind in QuestionKind}


def _question_from_payload(payload: QuestionPayload, composite_name_id: int | None) -> Question:
    kind = _KINDS.get(payload.type.strip().lower())
    if kind is None:
        raise CatalogError(f"question {payload.id} has unknown type {payload.type!r}")
    if composite_name_id is not None and payload.id == composite_name_id:
        kind = QuestionKind.COMPOSITE_NAME
    options = tuple(payload.options or ())
    if kind is QuestionKind.CHOICE:
        if not options:
            raise CatalogError(f"choice question {payload.id} has no options")
    else:
        options = ()
    return Question(id=payload.id, text=payload.text, kind=kind, options=options)


def build_catalog(
    payloads: Sequence[QuestionPayload],
    *,
    composite_name_id: int | None = None,
) -> tuple[Question, ...]:
    """Turn wire questions into the immutable, ordered session catalog.

    Server order is kept as the presentation order.  Raises :class:`CatalogError`
    for an empty catalog, duplicate ids, choice questions without options, or
    more than one composite-name question.
    """

    if not payloads:
        raise CatalogError("question catalog is empty")
    questions: list[Question] = []
    seen: set[int] = set()
    for payload in payloads:
        question = _question_from_payload(payload, composite_name_id)
        if question.id in seen:
            raise CatalogError(f"duplicate question id {question.id}")
        seen.add(question.id)
        questions.append(question)
    composite = [q.id for q in questions if q.is_composite]
    if len(composite) > 1:
        raise CatalogError(f"only one name question is supported, got ids {composite}")
    return tuple(questions)


def load_catalog(store: AnswerStore, *, composite_name_id: int | None = None) -> tuple[Question, ...]:
    result = store.fetch_questions()
    if not result.ok:
        logger.warning("question catalog fetch failed: %s", result.error)
        raise CatalogError("Failed to load questions. Please try again later.")
    catalog = build_catalog(list(result.value or ()), composite_name_id=composite_name_id)
    logger.debug("loaded %d questions", len(catalog))
    return catalog


def seed_answers(questions: Sequence[Question], answers: Iterable[Answer]) -> tuple[Answer, ...]:
    """Keep answers for known questions, collapsing repeats to the newest one.

    The newest ``timestamp`` wins; on a tie the later entry in *answers* wins.
    """

    known = {question.id for question in questions}
    ordered: dict[int, Answer] = {}
    for answer in answers:
        if answer.question_id not in known:
            logger.debug("dropping answer for unknown question %s", answer.question_id)
            continue
        held = ordered.get(answer.question_id)
        if held is None or answer.timestamp >= held.timestamp:
            ordered[answer.question_id] = answer
    return tuple(ordered.values())
