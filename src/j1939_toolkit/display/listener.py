"""Listener that reports progress and prompts on the terminal."""

import logging
from typing import Optional

from rich.prompt import Prompt

from ..controllers.listener import AnswerType, MessageType, QuestionCallback, ResultsListener
from ..models.outcome import Outcome, OutcomeRecord
from .console import Console, console as default_console

logger = logging.getLogger(__name__)

SEVERITY_STYLES = {
    MessageType.INFO: "cyan",
    MessageType.WARNING: "yellow",
    MessageType.QUESTION: "magenta",
    MessageType.ERROR: "red",
}


class ConsoleListener(ResultsListener):
    """
    Prints outcomes, banners and prompts with rich.

    Transcript lines are printed only when verbose; the report file keeps
    the complete transcript.
    """

    def __init__(self, console: Optional[Console] = None, verbose: bool = False, interactive: bool = True):
        super().__init__()
        self._console = console or default_console
        self._verbose = verbose
        self._interactive = interactive

    def on_progress(self, current: int, total: int, message: str) -> None:
        logger.debug(f"[{current}/{total}] {message}")

    def on_result(self, line: str) -> None:
        if self._verbose:
            self._console.print_line(line)

    def on_outcome(self, record: OutcomeRecord) -> None:
        if record.outcome != Outcome.PASS:
            self._console.print_outcome(record.outcome, record.message)

    def add_outcome(self, part, step, outcome, message):
        self.on_outcome(OutcomeRecord(part=part, step=step, outcome=outcome, message=message))

    def on_urgent_message(
        self,
        text: str,
        title: str,
        severity: MessageType,
        question_callback: Optional[QuestionCallback] = None,
    ) -> Optional[AnswerType]:
        self._console.panel(text, title=title, style=SEVERITY_STYLES[severity])

        if severity != MessageType.QUESTION:
            if self._interactive and not self.is_cancelled():
                Prompt.ask("Press Enter to continue", default="", show_default=False,
                           console=self._console.rich_console)
            return None

        if self.is_cancelled():
            answer = AnswerType.CANCEL
        elif not self._interactive:
            answer = AnswerType.YES
        else:
            choice = Prompt.ask("Continue?", choices=["yes", "no", "cancel"], default="yes",
                                console=self._console.rich_console)
            # A cancel that arrived while the prompt was open wins over the answer
            answer = AnswerType.CANCEL if self.is_cancelled() else AnswerType(choice)

        if question_callback:
            question_callback(answer)
        return answer

    def begin_part(self, part, name):
        self._console.rule(name, style="bold blue")

    def end_part(self, part, name, outcome):
        self._console.print_outcome(outcome, f"{name} finished")

    def begin_step(self, part, step, name):
        if self._verbose:
            self._console.subheader(name)
