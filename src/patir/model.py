# model.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class Status(str, Enum):
    """Execution state shared by commands and sequence statuses."""

    NOT_EXECUTED = "not_executed"
    RUNNING = "running"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


class ExitStrategy(str, Enum):
    """
    How a step's failure affects the sequence it belongs to.

    fail_*  -> the sequence stops at this step
    flunk_* -> the sequence is marked failed but carries on
    """

    FAIL_ON_ERROR = "fail_on_error"
    FLUNK_ON_ERROR = "flunk_on_error"
    FAIL_ON_WARNING = "fail_on_warning"
    FLUNK_ON_WARNING = "flunk_on_warning"

    def __str__(self) -> str:
        return self.value


def normalize_strategy(value: Union[ExitStrategy, str, None]) -> ExitStrategy:
    """Map a strategy token to its enum member, falling back to fail_on_error."""
    try:
        return ExitStrategy(value)
    except ValueError:
        return ExitStrategy.FAIL_ON_ERROR


@dataclass(frozen=True)
class StepState:
    """Snapshot of a step as seen by a SequenceStatus at submission time."""
    name: str
    status: Status
    output: str = ""
    duration: float = 0
    error: str = ""
    strategy: Optional[ExitStrategy] = None

    @classmethod
    def of(cls, step: Any) -> StepState:
        # anything that quacks like a Command (SequenceStatus included)
        return cls(
            name=step.name,
            status=step.status,
            output=step.output,
            duration=step.exec_time,
            error=step.error,
            strategy=getattr(step, "strategy", None),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": str(self.status),
            "output": self.output,
            "duration": self.duration,
            "error": self.error,
            "strategy": str(self.strategy) if self.strategy is not None else None,
        }
