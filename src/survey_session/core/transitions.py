"""Survey session state machine.

Every respondent intent is applied by :func:`apply_intent`, a pure function of
``(state, intent, now)``.  It returns the next state together with the store
effects the caller should issue.  Local state is authoritative: effects are
emitted after the optimistic update and their outcome never feeds back into
the transition.

Violated preconditions (wrong mode, blank input, nothing to go back to) are
silent no-ops that return the unchanged state and no effects.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from .interfaces import PersistMethod
from .models import (
    EMPTY_BUFFERS,
    Answer,
    InputBuffers,
    Mode,
    Question,
    SessionState,
    join_name,
    split_name,
)

__all__ = [
    "BeginEdit",
    "CancelEdit",
    "EnterReview",
    "Exit",
    "GoPrevious",
    "Intent",
    "PersistAnswer",
    "Restart",
    "ReviewNext",
    "SaveEdit",
    "Submit",
    "Transition",
    "apply_intent",
    "buffers_for",
    "initial_state",
    "upsert_answer",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Submit:
    value: str


@dataclass(frozen=True)
class GoPrevious:
    pass


@dataclass(frozen=True)
class EnterReview:
    pass


@dataclass(frozen=True)
class ReviewNext:
    pass


@dataclass(frozen=True)
class BeginEdit:
    pass


@dataclass(frozen=True)
class SaveEdit:
    value: str
    # Last name when the reviewed answer belongs to the composite-name question.
    second: str | None = None


@dataclass(frozen=True)
class CancelEdit:
    pass


@dataclass(frozen=True)
class Restart:
    yes: bool


@dataclass(frozen=True)
class Exit:
    pass


Intent = Submit | GoPrevious | EnterReview | ReviewNext | BeginEdit | SaveEdit | CancelEdit | Restart | Exit


@dataclass(frozen=True)
class PersistAnswer:
    answer: Answer
    method: PersistMethod


@dataclass(frozen=True)
class Transition:
    state: SessionState
    effects: tuple[PersistAnswer, ...] = ()


def initial_state(questions: tuple[Question, ...], answers: tuple[Answer, ...] = ()) -> SessionState:
    """Fresh session at the first question, optionally seeded with prior answers."""

    questions = tuple(questions)
    state = SessionState(questions=questions, answers=tuple(answers))
    if questions:
        state = replace(state, inputs=buffers_for(questions[0], state.answer_for(questions[0].id)))
    return state


def buffers_for(question: Question, answer: Answer | None) -> InputBuffers:
    """Rehydrate prompt buffers from a stored answer, or empty buffers."""

    if answer is None:
        return EMPTY_BUFFERS
    if question.is_composite:
        first, last = split_name(answer.value)
        return InputBuffers(first_name=first, last_name=last)
    return InputBuffers(value=answer.value)


def upsert_answer(answers: tuple[Answer, ...], answer: Answer) -> tuple[Answer, ...]:
    """Replace the answer for ``answer.question_id`` in place, or append it."""

    replaced = False
    updated: list[Answer] = []
    for existing in answers:
        if existing.question_id == answer.question_id:
            if not replaced:
                updated.append(answer)
                replaced = True
            continue
        updated.append(existing)
    if not replaced:
        updated.append(answer)
    return tuple(updated)


def _reset(state: SessionState) -> SessionState:
    return initial_state(state.questions)


def _submit(state: SessionState, intent: Submit, now: datetime) -> Transition:
    question = state.current_question
    value = (intent.value or "").strip()
    if state.mode is not Mode.ASKING or question is None or not value:
        return Transition(state)

    if question.is_composite:
        if not state.inputs.awaiting_last_name:
            # First sub-prompt: hold the first name, keep any prefilled last name.
            held = replace(state.inputs, first_name=value, awaiting_last_name=True)
            return Transition(replace(state, inputs=held))
        first = state.inputs.first_name.strip()
        if not first:
            return Transition(state)
        value = join_name(first, value)

    answer = Answer(
        question_id=question.id,
        question_text=question.text,
        value=value,
        timestamp=now,
    )
    answers = upsert_answer(state.answers, answer)
    next_state = replace(state, answers=answers, inputs=EMPTY_BUFFERS)
    next_index = state.current_index + 1
    if next_index < len(state.questions):
        upcoming = state.questions[next_index]
        # Revisited questions show what was given before.
        next_state = replace(
            next_state,
            current_index=next_index,
            inputs=buffers_for(upcoming, next_state.answer_for(upcoming.id)),
        )
    else:
        next_state = replace(next_state, mode=Mode.COMPLETE)
    logger.debug("answer recorded", extra={"question_id": question.id, "mode": next_state.mode.value})
    return Transition(next_state, (PersistAnswer(answer, PersistMethod.CREATE),))


def _go_previous(state: SessionState, _intent: GoPrevious, _now: datetime) -> Transition:
    if state.mode is not Mode.ASKING:
        return Transition(state)
    if state.inputs.awaiting_last_name:
        # Back from the last-name stage to the first-name stage of the same question.
        return Transition(replace(state, inputs=replace(state.inputs, awaiting_last_name=False)))
    if state.current_index <= 0:
        return Transition(state)
    index = state.current_index - 1
    question = state.questions[index]
    return Transition(
        replace(state, current_index=index, inputs=buffers_for(question, state.answer_for(question.id)))
    )


def _enter_review(state: SessionState, _intent: EnterReview, _now: datetime) -> Transition:
    if state.mode is not Mode.COMPLETE or not state.answers:
        return Transition(state)
    return Transition(replace(state, mode=Mode.REVIEWING, review_index=0, edit_inputs=EMPTY_BUFFERS))


def _review_next(state: SessionState, _intent: ReviewNext, _now: datetime) -> Transition:
    if state.mode is not Mode.REVIEWING:
        return Transition(state)
    if state.review_index + 1 < len(state.answers):
        return Transition(replace(state, review_index=state.review_index + 1))
    return Transition(replace(state, mode=Mode.COMPLETE, review_index=0))


def _reviewed_question(state: SessionState, answer: Answer) -> Question:
    question = state.question_by_id(answer.question_id)
    if question is None:
        # Answer seeded for a question the catalog no longer carries.
        return Question(id=answer.question_id, text=answer.question_text)
    return question


def _begin_edit(state: SessionState, _intent: BeginEdit, _now: datetime) -> Transition:
    answer = state.reviewed_answer
    if state.mode is not Mode.REVIEWING or answer is None:
        return Transition(state)
    question = _reviewed_question(state, answer)
    return Transition(replace(state, mode=Mode.EDITING, edit_inputs=buffers_for(question, answer)))


def _save_edit(state: SessionState, intent: SaveEdit, now: datetime) -> Transition:
    current = state.reviewed_answer
    if state.mode is not Mode.EDITING or current is None:
        return Transition(state)
    value = (intent.value or "").strip()
    if _reviewed_question(state, current).is_composite:
        second = (intent.second or "").strip()
        if not value or not second:
            return Transition(state)
        value = join_name(value, second)
    elif not value:
        return Transition(state)

    updated = replace(current, value=value, timestamp=now)
    answers = list(state.answers)
    answers[state.review_index] = updated
    next_state = replace(state, answers=tuple(answers), mode=Mode.REVIEWING, edit_inputs=EMPTY_BUFFERS)
    logger.debug("answer edited", extra={"question_id": updated.question_id})
    return Transition(next_state, (PersistAnswer(updated, PersistMethod.UPDATE),))


def _cancel_edit(state: SessionState, _intent: CancelEdit, _now: datetime) -> Transition:
    if state.mode is not Mode.EDITING:
        return Transition(state)
    return Transition(replace(state, mode=Mode.REVIEWING, edit_inputs=EMPTY_BUFFERS))


def _restart(state: SessionState, intent: Restart, _now: datetime) -> Transition:
    if state.mode is not Mode.COMPLETE:
        return Transition(state)
    if intent.yes:
        # Remote answers are left in place; only the local session starts over.
        return Transition(_reset(state))
    return Transition(replace(state, mode=Mode.EXITING))


def _exit(state: SessionState, _intent: Exit, _now: datetime) -> Transition:
    if state.mode is not Mode.EXITING:
        return Transition(state)
    return Transition(_reset(state))


_HANDLERS: dict[type, Callable[[SessionState, object, datetime], Transition]] = {
    Submit: _submit,
    GoPrevious: _go_previous,
    EnterReview: _enter_review,
    ReviewNext: _review_next,
    BeginEdit: _begin_edit,
    SaveEdit: _save_edit,
    CancelEdit: _cancel_edit,
    Restart: _restart,
    Exit: _exit,
}


def apply_intent(state: SessionState, intent: Intent, *, now: datetime) -> Transition:
    handler = _HANDLERS.get(type(intent))
    if handler is None:
        raise TypeError(f"unsupported intent: {intent!r}")
    return handler(state, intent, now)
