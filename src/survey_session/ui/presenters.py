from __future__ import annotations

from collections.abc import Callable

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.models import InputBuffers, Mode, Question, QuestionKind, SessionState
from ..core.transitions import (
    BeginEdit,
    CancelEdit,
    EnterReview,
    Exit,
    GoPrevious,
    Intent,
    Restart,
    ReviewNext,
    SaveEdit,
    Submit,
)

__all__ = ["RichPresenter"]

COMPLETE_MESSAGE = "Thank you for your responses! Would you like to start over?"
FAREWELL_MESSAGE = "Thank you for participating! Feel free to start again anytime."

# Commands typed where free text is accepted carry a colon so any answer stays typeable.
BACK_COMMAND = ":back"
QUIT_COMMAND = ":q"
CANCEL_COMMAND = ":cancel"


class RichPresenter:
    """Console rendering of a survey session and mapping of typed input to intents."""

    def __init__(
        self,
        *,
        no_color: bool = False,
        console: Console | None = None,
        input_fn: Callable[[str], str] = input,
    ) -> None:
        if console is not None:
            self.console = console
        elif no_color:
            self.console = Console(force_terminal=False, color_system=None, highlight=False)
        else:
            self.console = Console(force_terminal=True, color_system="auto")
        self._input = input_fn

    # Rendering ---------------------------------------------------------

    def show_fatal(self, message: str) -> None:
        self.console.print(Panel(message, title="Survey unavailable", border_style="bold red", expand=False))

    def render(self, state: SessionState) -> None:
        if state.error:
            self.console.print(f"[bold red]{escape(state.error)}[/]")
        if state.mode is Mode.ASKING:
            self._render_question(state)
        elif state.mode is Mode.COMPLETE:
            self.console.print(Panel(COMPLETE_MESSAGE, title="Survey complete", border_style="green", expand=False))
            self.console.print("[dim]Controls: y = start over • n = finish • r = review answers[/]")
        elif state.mode is Mode.REVIEWING:
            self._render_review(state)
        elif state.mode is Mode.EDITING:
            answer = state.reviewed_answer
            if answer is not None:
                self.console.rule(f"Editing: {escape(answer.question_text)}")
                self.console.print(f"[dim]Empty input keeps the shown value • {CANCEL_COMMAND} = cancel[/]")
        elif state.mode is Mode.EXITING:
            self.console.print(Panel(FAREWELL_MESSAGE, border_style="cyan", expand=False))

    def _render_question(self, state: SessionState) -> None:
        question = state.current_question
        if question is None:
            return
        total = len(state.questions)
        self.console.rule(f"Question {state.current_index + 1} of {total}")
        self.console.print(f"[bold]{escape(question.text)}[/]")
        if question.kind is QuestionKind.CHOICE:
            table = Table(show_header=True, header_style="bold blue", box=box.SIMPLE_HEAVY)
            table.add_column("#", justify="right", style="cyan", no_wrap=True)
            table.add_column("Option", style="bold")
            for i, option in enumerate(question.options, 1):
                table.add_row(str(i), escape(option))
            self.console.print(table)
        elif question.is_composite:
            label = "Last name" if state.inputs.awaiting_last_name else "First name"
            self.console.print(f"[cyan]{label}[/]")
        prefill = _prefill(question, state.inputs)
        if prefill:
            self.console.print(f"[dim]Previous answer: {escape(prefill)} (Enter keeps it)[/]")
        controls = "Enter = submit"
        if state.current_index > 0 or state.inputs.awaiting_last_name:
            controls += f" • {BACK_COMMAND} = previous"
        self.console.print(f"[dim]Controls: {controls} • {QUIT_COMMAND} = quit[/]")

    def _render_review(self, state: SessionState) -> None:
        answer = state.reviewed_answer
        if answer is None:
            return
        info = Table.grid(padding=(0, 1))
        info.add_column(style="bold cyan", justify="right")
        info.add_column(justify="left")
        info.add_row("Question", escape(answer.question_text))
        info.add_row("Answer", escape(answer.value))
        title = f"Review {state.review_index + 1} of {len(state.answers)}"
        self.console.print(Panel(info, title=title, border_style="magenta", expand=False))
        self.console.print("[dim]Controls: Enter = next • e = edit • q = quit[/]")

    # Input -------------------------------------------------------------

    def _read(self, prompt: str) -> str | None:
        try:
            return self._input(prompt).strip()
        except EOFError:
            return None

    def prompt(self, state: SessionState) -> Intent | None:
        """Read one intent for *state*; ``None`` means the respondent quit."""

        if state.mode is Mode.EXITING:
            return Exit()
        if state.mode is Mode.EDITING:
            return self._prompt_edit(state)
        while True:
            raw = self._read("> ")
            if raw is None:
                return None
            lowered = raw.lower()
            if state.mode is Mode.ASKING:
                if lowered == QUIT_COMMAND:
                    return None
                if lowered == BACK_COMMAND:
                    return GoPrevious()
                question = state.current_question
                if question is None:
                    return None
                if not raw:
                    return Submit(_prefill(question, state.inputs))
                value = _resolve_option(question, raw)
                if value is not None:
                    return Submit(value)
            if state.mode is Mode.COMPLETE:
                if lowered in {"y", "yes"}:
                    return Restart(True)
                if lowered in {"n", "no"}:
                    return Restart(False)
                if lowered in {"r", "review"}:
                    return EnterReview()
                if lowered in {"q", QUIT_COMMAND}:
                    return None
            elif state.mode is Mode.REVIEWING:
                if not raw:
                    return ReviewNext()
                if lowered == "e":
                    return BeginEdit()
                if lowered in {"q", QUIT_COMMAND}:
                    return None
            self.console.print("[yellow]Unrecognised input.[/]")

    def _prompt_edit(self, state: SessionState) -> Intent | None:
        answer = state.reviewed_answer
        if answer is None:
            return CancelEdit()
        question = state.question_by_id(answer.question_id)
        if question is None:
            question = Question(id=answer.question_id, text=answer.question_text)
        buffers = state.edit_inputs
        if question.is_composite:
            first = self._read(f"First name [{buffers.first_name}]: ")
            if first is None:
                return None
            if first.lower() == CANCEL_COMMAND:
                return CancelEdit()
            last = self._read(f"Last name [{buffers.last_name}]: ")
            if last is None:
                return None
            if last.lower() == CANCEL_COMMAND:
                return CancelEdit()
            return SaveEdit(first or buffers.first_name, last or buffers.last_name)
        while True:
            raw = self._read(f"New answer [{buffers.value}]: ")
            if raw is None:
                return None
            if raw.lower() == CANCEL_COMMAND:
                return CancelEdit()
            if not raw:
                return SaveEdit(buffers.value)
            value = _resolve_option(question, raw)
            if value is not None:
                return SaveEdit(value)
            self.console.print("[yellow]Unrecognised input.[/]")


def _prefill(question: Question, buffers: InputBuffers) -> str:
    if question.is_composite:
        return buffers.last_name if buffers.awaiting_last_name else buffers.first_name
    return buffers.value


def _resolve_option(question: Question, raw: str) -> str | None:
    """Map an option number or case-insensitive option text to the option itself.

    Returns ``None`` for a choice question when *raw* names none of its options.
    """

    if question.kind is not QuestionKind.CHOICE:
        return raw
    if raw.isdigit():
        index = int(raw) - 1
        if 0 <= index < len(question.options):
            return question.options[index]
    for option in question.options:
        if option.lower() == raw.lower():
            return option
    return None
