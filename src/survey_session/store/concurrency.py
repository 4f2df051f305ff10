from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Protocol

from ..core.interfaces import StoreResult

__all__ = ["BackgroundDispatcher", "Dispatcher", "InlineDispatcher"]

logger = logging.getLogger(__name__)

_MAX_WORKERS = max(1, min(8, os.cpu_count() or 1))

StoreCall = Callable[..., StoreResult[Any]]
Completion = Callable[[StoreResult[Any]], None]


class Dispatcher(Protocol):
    def fire(self, func: StoreCall, /, *args: Any, on_done: Completion) -> None: ...

    def drain(self, timeout: float | None = None) -> None: ...

    def shutdown(self) -> None: ...


def _guarded(func: StoreCall, /, *args: Any) -> StoreResult[Any]:
    try:
        return func(*args)
    except Exception as exc:  # a raising store still resolves to a failure
        logger.exception("store call %s raised", getattr(func, "__name__", func))
        return StoreResult.failure(f"{exc.__class__.__name__}: {exc}")


class InlineDispatcher:
    """Runs store calls immediately on the calling thread."""

    def fire(self, func: StoreCall, /, *args: Any, on_done: Completion) -> None:
        on_done(_guarded(func, *args))

    def drain(self, timeout: float | None = None) -> None:
        return None

    def shutdown(self) -> None:
        return None


class BackgroundDispatcher:
    """Fire-and-forget store calls on a small thread pool.

    Calls for the same key are not ordered relative to each other; the last
    one to complete wins on the remote side.
    """

    def __init__(self, max_workers: int = _MAX_WORKERS) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="survey-store")
        self._pending = 0
        self._idle = threading.Condition()

    def fire(self, func: StoreCall, /, *args: Any, on_done: Completion) -> None:
        with self._idle:
            self._pending += 1
        future = self._executor.submit(partial(_guarded, func, *args))
        future.add_done_callback(partial(self._finish, on_done))

    def _finish(self, on_done: Completion, future: Future[StoreResult[Any]]) -> None:
        try:
            on_done(future.result())
        finally:
            with self._idle:
                self._pending -= 1
                self._idle.notify_all()

    def drain(self, timeout: float | None = None) -> None:
        # Waits for completion callbacks too, not just the calls.
        with self._idle:
            self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
