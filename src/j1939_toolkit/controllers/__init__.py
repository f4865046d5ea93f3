"""Test orchestration: repository, listeners, steps, parts and the runner."""

from .data_repository import DataRepository, RepositorySnapshot
from .listener import AnswerType, CompositeListener, MessageType, ResultsListener, TranscriptListener
from .part import PartController, RunEnvironment
from .runner import ExitCode, TestRunner, exit_code_for
from .step import BaseStep, Ending, EndingSignal, PlaceholderStep, StepContext

__all__ = [
    "DataRepository",
    "RepositorySnapshot",
    "AnswerType",
    "CompositeListener",
    "MessageType",
    "ResultsListener",
    "TranscriptListener",
    "PartController",
    "RunEnvironment",
    "ExitCode",
    "TestRunner",
    "exit_code_for",
    "BaseStep",
    "Ending",
    "EndingSignal",
    "PlaceholderStep",
    "StepContext",
]
