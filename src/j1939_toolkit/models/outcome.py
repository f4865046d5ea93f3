"""Outcomes and step/part results."""

from collections import Counter
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Outcome(str, Enum):
    """Result kind of a single check."""
    PASS = "PASS"
    INCOMPLETE = "INCOMPLETE"
    WARN = "WARN"
    FAIL = "FAIL"
    ABORT = "ABORT"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __str__(self) -> str:
        return self.value


_SEVERITY = {
    Outcome.PASS: 0,
    Outcome.INCOMPLETE: 1,
    Outcome.WARN: 2,
    Outcome.FAIL: 3,
    Outcome.ABORT: 4,
}


def worst_outcome(outcomes) -> Outcome:
    """Most severe outcome; PASS when there are none."""
    return max(outcomes, key=lambda outcome: outcome.severity, default=Outcome.PASS)


class StepState(str, Enum):
    """Lifecycle of a step (and, analogously, of a part)."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED_UNEXPECTED = "failed_unexpected"


class OutcomeRecord(BaseModel):
    """One outcome reported by a step."""

    part: int = Field(..., ge=1)
    step: int = Field(..., ge=1)
    outcome: Outcome
    message: str = Field(default="")
    timestamp: datetime = Field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.outcome.value}: {self.message}"


class StepResult(BaseModel):
    """Outcomes of one step, in the order they were added."""

    part: int = Field(..., ge=1)
    step: int = Field(..., ge=1)
    name: str = Field(default="")
    state: StepState = Field(default=StepState.PENDING)
    outcomes: List[OutcomeRecord] = Field(default_factory=list)

    @property
    def worst(self) -> Outcome:
        return worst_outcome(record.outcome for record in self.outcomes)

    @property
    def display_name(self) -> str:
        label = f"Step 6.{self.part}.{self.step}"
        return f"{label} {self.name}" if self.name else label

    def add(self, record: OutcomeRecord) -> None:
        self.outcomes.append(record)


class PartResult(BaseModel):
    """Step results of one part, in declared step order."""

    part: int = Field(..., ge=1)
    name: str = Field(default="")
    state: StepState = Field(default=StepState.PENDING)
    steps: Dict[int, StepResult] = Field(default_factory=dict)
    start_time: Optional[datetime] = Field(default=None)
    end_time: Optional[datetime] = Field(default=None)

    def step_result(self, step: int, name: str = "") -> StepResult:
        """Get or create the result for a step."""
        result = self.steps.get(step)
        if result is None:
            result = StepResult(part=self.part, step=step, name=name)
            self.steps[step] = result
        elif name and not result.name:
            result.name = name
        return result

    @property
    def ordered_steps(self) -> List[StepResult]:
        return [self.steps[number] for number in sorted(self.steps)]

    @property
    def worst(self) -> Outcome:
        return worst_outcome(step.worst for step in self.steps.values())

    @property
    def has_errors(self) -> bool:
        """True when a bus or internal error ended a step."""
        return self.state == StepState.FAILED_UNEXPECTED or any(
            step.state == StepState.FAILED_UNEXPECTED for step in self.steps.values()
        )

    @property
    def counts(self) -> Dict[Outcome, int]:
        """Number of outcomes of each kind across all steps."""
        counter = Counter(
            record.outcome for step in self.steps.values() for record in step.outcomes
        )
        return {outcome: counter.get(outcome, 0) for outcome in Outcome}

    @property
    def display_name(self) -> str:
        return self.name or f"Part {self.part} Test"
