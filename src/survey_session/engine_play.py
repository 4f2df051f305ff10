from __future__ import annotations

import logging

from .core.errors import CatalogError
from .core.interfaces import AnswerStore
from .core.transitions import Exit
from .features.session import SessionController
from .store.concurrency import Dispatcher
from .ui.presenters import RichPresenter

logger = logging.getLogger(__name__)


def run_session(
    store: AnswerStore,
    presenter: RichPresenter,
    *,
    resume: bool = False,
    composite_name_id: int | None = None,
    dispatcher: Dispatcher | None = None,
) -> int:
    """Drive one interactive run: render, read an intent, apply it, repeat.

    Returns the process exit code: 0 once the respondent exits or quits, 1 when
    the question catalog cannot be loaded.
    """

    try:
        controller = SessionController.start(
            store,
            dispatcher=dispatcher,
            composite_name_id=composite_name_id,
            resume=resume,
        )
    except CatalogError as exc:
        presenter.show_fatal(str(exc))
        if dispatcher is not None:
            dispatcher.shutdown()
        return 1

    try:
        while True:
            state = controller.state
            presenter.render(state)
            intent = presenter.prompt(state)
            if intent is None:
                logger.debug("respondent quit", extra={"mode": state.mode.value})
                break
            controller.dispatch(intent)
            if isinstance(intent, Exit):
                break
    finally:
        controller.close()
    return 0
