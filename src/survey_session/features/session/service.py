from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from ...core.catalog import load_catalog, seed_answers
from ...core.interfaces import AnswerStore, PersistMethod, StoreResult
from ...core.models import Mode, Question, SessionState
from ...core.transitions import (
    BeginEdit,
    CancelEdit,
    EnterReview,
    Exit,
    GoPrevious,
    Intent,
    PersistAnswer,
    Restart,
    ReviewNext,
    SaveEdit,
    Submit,
    apply_intent,
    initial_state,
)
from ...store.concurrency import Dispatcher, InlineDispatcher

__all__ = [
    "EDIT_SAVE_FAILED",
    "RESUME_FAILED",
    "SAVE_FAILED",
    "SessionController",
]

logger = logging.getLogger(__name__)

SAVE_FAILED = "Failed to save answer. Please try again."
EDIT_SAVE_FAILED = "Failed to save edited answer. Please try again."
RESUME_FAILED = "Failed to load previous answers."

_FAILURE_MESSAGES = {
    PersistMethod.CREATE: SAVE_FAILED,
    PersistMethod.UPDATE: EDIT_SAVE_FAILED,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_reset(previous: SessionState, current: SessionState) -> bool:
    return previous.mode in (Mode.COMPLETE, Mode.EXITING) and current.mode is Mode.ASKING


class SessionController:
    """Owns one respondent's session state and mirrors answers to the store.

    Intents are applied synchronously; store writes go through the dispatcher
    and their results only ever touch the advisory ``error`` field.
    """

    def __init__(
        self,
        store: AnswerStore,
        questions: tuple[Question, ...],
        *,
        dispatcher: Dispatcher | None = None,
        clock: Callable[[], datetime] = _utcnow,
        state: SessionState | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher if dispatcher is not None else InlineDispatcher()
        self._clock = clock
        self._state = state if state is not None else initial_state(questions)
        self._lock = threading.Lock()
        # Bumped on every reset so late store results from a previous run are dropped.
        self._generation = 0

    @classmethod
    def start(
        cls,
        store: AnswerStore,
        *,
        dispatcher: Dispatcher | None = None,
        composite_name_id: int | None = None,
        resume: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> SessionController:
        """Load the catalog and open a session; raises ``CatalogError`` if it cannot."""

        questions = load_catalog(store, composite_name_id=composite_name_id)
        state = initial_state(questions)
        if resume:
            fetched = store.fetch_answers()
            if fetched.ok:
                state = initial_state(questions, seed_answers(questions, fetched.value or ()))
                logger.debug("resumed session with %d answers", len(state.answers))
            else:
                logger.warning("could not fetch previous answers: %s", fetched.error)
                state = replace(state, error=RESUME_FAILED)
        return cls(store, questions, dispatcher=dispatcher, clock=clock, state=state)

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def dispatch(self, intent: Intent) -> SessionState:
        with self._lock:
            previous = self._state
            transition = apply_intent(previous, intent, now=self._clock())
            self._state = transition.state
            if _is_reset(previous, transition.state):
                self._generation += 1
            generation = self._generation
            new_state = self._state
        if new_state is not previous:
            logger.debug(
                "%s -> %s",
                type(intent).__name__,
                new_state.mode.value,
                extra={"index": new_state.current_index, "review_index": new_state.review_index},
            )
        for effect in transition.effects:
            self._persist(effect, generation)
        return self.state

    def _persist(self, effect: PersistAnswer, generation: int) -> None:
        self._dispatcher.fire(
            self._store.upsert_answer,
            effect.answer,
            effect.method,
            on_done=lambda result: self._on_persisted(effect, generation, result),
        )

    def _on_persisted(self, effect: PersistAnswer, generation: int, result: StoreResult[Any]) -> None:
        if result.ok:
            return
        logger.warning(
            "persisting answer failed: %s",
            result.error,
            extra={"question_id": effect.answer.question_id, "method": effect.method.value},
        )
        with self._lock:
            if generation != self._generation:
                return
            self._state = replace(self._state, error=_FAILURE_MESSAGES[effect.method])

    def submit(self, value: str) -> SessionState:
        return self.dispatch(Submit(value))

    def go_previous(self) -> SessionState:
        return self.dispatch(GoPrevious())

    def enter_review(self) -> SessionState:
        return self.dispatch(EnterReview())

    def review_next(self) -> SessionState:
        return self.dispatch(ReviewNext())

    def begin_edit(self) -> SessionState:
        return self.dispatch(BeginEdit())

    def save_edit(self, value: str, second: str | None = None) -> SessionState:
        return self.dispatch(SaveEdit(value, second))

    def cancel_edit(self) -> SessionState:
        return self.dispatch(CancelEdit())

    def restart(self, yes: bool) -> SessionState:
        return self.dispatch(Restart(yes))

    def exit(self) -> SessionState:
        return self.dispatch(Exit())

    def drain(self, timeout: float | None = None) -> None:
        self._dispatcher.drain(timeout)

    def close(self) -> None:
        self._dispatcher.drain()
        self._dispatcher.shutdown()
