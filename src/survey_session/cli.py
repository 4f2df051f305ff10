from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from .core.settings import is_valid_timeout, load_settings
from .engine_play import run_session
from .store.client import AnswerStoreClient
from .store.concurrency import BackgroundDispatcher
from .ui.presenters import RichPresenter


def _timeout_arg(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timeout: {raw!r}") from None
    if not is_valid_timeout(value):
        raise argparse.ArgumentTypeError(f"timeout must be a finite number of seconds above 0, got {raw!r}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    p = argparse.ArgumentParser(prog="survey-session", description="Answer a survey one question at a time")
    p.add_argument(
        "--base-url",
        default=settings.base_url,
        help="Answer store base URL (default: $SURVEY_STORE_URL or %(default)s)",
    )
    p.add_argument("--timeout", type=_timeout_arg, default=settings.timeout, help="Per-request timeout in seconds")
    p.add_argument("--resume", action="store_true", help="Start from answers already saved in the store")
    p.add_argument(
        "--name-question-id",
        type=int,
        default=settings.composite_name_id,
        metavar="ID",
        help="Ask this text question as a first name / last name pair",
    )
    p.add_argument("--no-color", action="store_true", help="Disable colored output (default is colored)")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostics level written to stderr",
    )
    return p


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)],
    )


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.log_level)

    presenter = RichPresenter(no_color=args.no_color)
    with AnswerStoreClient(args.base_url, timeout=args.timeout) as store:
        code = run_session(
            store,
            presenter,
            resume=args.resume,
            composite_name_id=args.name_question_id,
            dispatcher=BackgroundDispatcher(),
        )
    raise SystemExit(code)


if __name__ == "__main__":
    main()
