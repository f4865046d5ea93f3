"""Results listeners: the sink for progress, transcript lines, outcomes and prompts."""

import threading
from collections import deque
from enum import Enum
from typing import Callable, Iterable, List, Optional

from ..models.outcome import Outcome, OutcomeRecord


class MessageType(str, Enum):
    """Severity of an urgent message."""
    INFO = "info"
    WARNING = "warning"
    QUESTION = "question"
    ERROR = "error"


class AnswerType(str, Enum):
    """Answer to a QUESTION message."""
    YES = "yes"
    NO = "no"
    CANCEL = "cancel"


QuestionCallback = Callable[[AnswerType], None]


class ResultsListener:
    """
    Base listener; every notification is a no-op unless overridden.

    The cancel flag is shared by everything polling is_cancelled(), so
    cancel() may be called from any thread.
    """

    def __init__(self):
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation of the running part."""
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def reset(self) -> None:
        self._cancel_event.clear()

    def on_progress(self, current: int, total: int, message: str) -> None:
        pass

    def on_result(self, line: str) -> None:
        pass

    def on_urgent_message(
        self,
        text: str,
        title: str,
        severity: MessageType,
        question_callback: Optional[QuestionCallback] = None,
    ) -> Optional[AnswerType]:
        """
        Show a message and block until the user acknowledges it.

        Returns:
            The answer for QUESTION messages (also passed to question_callback)
        """
        return None

    def add_outcome(self, part: int, step: int, outcome: Outcome, message: str) -> None:
        """Record a structured outcome and append "KIND: message" to the transcript."""
        self.on_outcome(OutcomeRecord(part=part, step=step, outcome=outcome, message=message))
        self.on_result(f"{outcome.value}: {message}")

    def on_outcome(self, record: OutcomeRecord) -> None:
        pass

    def begin_part(self, part: int, name: str) -> None:
        pass

    def end_part(self, part: int, name: str, outcome: Outcome) -> None:
        pass

    def begin_step(self, part: int, step: int, name: str) -> None:
        pass

    def end_step(self, part: int, step: int, name: str, outcome: Outcome) -> None:
        pass


class TranscriptListener(ResultsListener):
    """
    Keeps everything in memory.

    Questions are answered from a queue of scripted answers, YES once it is
    empty, and CANCEL after cancel().
    """

    def __init__(self, answers: Iterable[AnswerType] = ()):
        super().__init__()
        self.results: List[str] = []
        self.outcomes: List[OutcomeRecord] = []
        self.progress: List[str] = []
        self.messages: List[str] = []
        self.milestones: List[str] = []
        self._answers = deque(answers)

    @property
    def transcript(self) -> str:
        return "".join(line + "\n" for line in self.results)

    def on_progress(self, current: int, total: int, message: str) -> None:
        self.progress.append(message)

    def on_result(self, line: str) -> None:
        self.results.append(line)

    def on_outcome(self, record: OutcomeRecord) -> None:
        self.outcomes.append(record)

    def on_urgent_message(self, text, title, severity, question_callback=None):
        self.messages.append(f"{title}: {text}")
        if severity != MessageType.QUESTION:
            return None

        if self.is_cancelled():
            answer = AnswerType.CANCEL
        else:
            answer = self._answers.popleft() if self._answers else AnswerType.YES
        if question_callback:
            question_callback(answer)
        return answer

    def begin_part(self, part, name):
        self.milestones.append(f"Begin {name}")

    def end_part(self, part, name, outcome):
        self.milestones.append(f"End {name}: {outcome.value}")

    def begin_step(self, part, step, name):
        self.milestones.append(f"Begin {name}")

    def end_step(self, part, step, name, outcome):
        self.milestones.append(f"End {name}: {outcome.value}")


class CompositeListener(ResultsListener):
    """Fans every notification out to several listeners."""

    def __init__(self, *listeners: ResultsListener):
        super().__init__()
        self._listeners = list(listeners)

    @property
    def listeners(self) -> List[ResultsListener]:
        return list(self._listeners)

    def cancel(self) -> None:
        super().cancel()
        for listener in self._listeners:
            listener.cancel()

    def is_cancelled(self) -> bool:
        return super().is_cancelled() or any(listener.is_cancelled() for listener in self._listeners)

    def reset(self) -> None:
        super().reset()
        for listener in self._listeners:
            listener.reset()

    def on_progress(self, current, total, message):
        for listener in self._listeners:
            listener.on_progress(current, total, message)

    def on_result(self, line):
        for listener in self._listeners:
            listener.on_result(line)

    def add_outcome(self, part, step, outcome, message):
        for listener in self._listeners:
            listener.add_outcome(part, step, outcome, message)

    def on_urgent_message(self, text, title, severity, question_callback=None):
        """Only the first listener interacts with the user; the others are told the answer."""
        if not self._listeners:
            return None
        answer = self._listeners[0].on_urgent_message(text, title, severity, question_callback)
        for listener in self._listeners[1:]:
            listener.on_result(f"{title}: {text}" if answer is None else f"{title}: {text} [{answer.value}]")
        return answer

    def begin_part(self, part, name):
        for listener in self._listeners:
            listener.begin_part(part, name)

    def end_part(self, part, name, outcome):
        for listener in self._listeners:
            listener.end_part(part, name, outcome)

    def begin_step(self, part, step, name):
        for listener in self._listeners:
            listener.begin_step(part, step, name)

    def end_step(self, part, step, name, outcome):
        for listener in self._listeners:
            listener.end_step(part, step, name, outcome)
