# sequence.py
from __future__ import annotations

import copy
import dataclasses
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .command import Command
from .model import ExitStrategy, Status, StepState, normalize_strategy

logger = logging.getLogger(__name__)

Observer = Callable[..., Any]


class SequenceStatus:
    """
    Status of a CommandSequence run, including a snapshot per step.

    The overall status is:
      - not_executed while no step has run
      - running while the sequence is being executed
      - success when all steps completed successfully
      - warning when at least one step warned and none failed
      - error when at least one step failed

    A SequenceStatus quacks like a Command itself, so statuses can be
    nested as steps of another status.
    """

    def __init__(self, sequence_name: str, steps: Optional[Iterable[Any]] = None):
        self.sequence_name = sequence_name or ""
        self.sequence_runner = ""
        self.sequence_id: Optional[Any] = None
        self.status = Status.NOT_EXECUTED
        self.strategy: Optional[ExitStrategy] = None
        self.step_states: Dict[int, StepState] = {}
        self.start_time: Optional[datetime] = None
        self.stop_time: Optional[datetime] = None
        self._previous_status = Status.NOT_EXECUTED
        for step in steps or []:
            self.submit_step(step)

    # ------------------------------------------------------------------
    # step snapshots
    # ------------------------------------------------------------------

    def submit_step(self, step: Any) -> None:
        """Record a snapshot of `step` under its number."""
        self.submit_state(step.number, StepState.of(step))

    def submit_state(self, number: Optional[int], state: StepState) -> None:
        """
        Record `state` for step `number` and update the overall status.

        The overall status only ever gets worse: once error it stays error,
        a warning never turns back into success. While running, snapshots
        are recorded but leave the overall status alone.
        """
        self.step_states[number] = state
        if self.status == Status.RUNNING:
            return

        self._previous_status = self.status
        incoming = state.status
        if incoming == Status.RUNNING:
            self.status = Status.RUNNING
        elif incoming == Status.WARNING:
            if self.status != Status.ERROR:
                self.status = Status.WARNING
            if self._previous_status == Status.ERROR:
                self.status = Status.ERROR
        elif incoming == Status.ERROR:
            self.status = Status.ERROR
        elif incoming == Status.SUCCESS:
            if self.status not in (Status.ERROR, Status.WARNING):
                self.status = Status.SUCCESS
            if self._previous_status == Status.WARNING:
                self.status = Status.WARNING
            if self._previous_status == Status.ERROR:
                self.status = Status.ERROR
        else:
            self.status = self._previous_status

    def step_state(self, number: int) -> Optional[StepState]:
        return self.step_states.get(number)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def running(self) -> bool:
        return self.status == Status.RUNNING

    def success(self) -> bool:
        return self.status == Status.SUCCESS

    def executed(self) -> bool:
        return self.status != Status.NOT_EXECUTED

    def completed(self) -> bool:
        """
        True when the sequence finished.

        That is the case when a fail_on_error step failed, a fail_on_warning
        step warned, or otherwise when no step is left not_executed/running.
        """
        if not self.executed():
            return False
        for state in self.step_states.values():
            if state.status == Status.ERROR and state.strategy == ExitStrategy.FAIL_ON_ERROR:
                return True
            if state.status == Status.WARNING and state.strategy == ExitStrategy.FAIL_ON_WARNING:
                return True
        return not any(
            state.status in (Status.NOT_EXECUTED, Status.RUNNING)
            for state in self.step_states.values()
        )

    # ------------------------------------------------------------------
    # Command lookalike
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.sequence_name

    @property
    def number(self) -> Optional[Any]:
        return self.sequence_id

    @property
    def output(self) -> str:
        return self.summary()

    @property
    def error(self) -> str:
        return ""

    @property
    def exec_time(self) -> float:
        if self.start_time and self.stop_time:
            return (self.stop_time - self.start_time).total_seconds()
        return 0

    # ------------------------------------------------------------------
    # rendering
    # ------------------------------------------------------------------

    def summary(self) -> str:
        """Short text report: name, overall status and one line per step."""
        text = ""
        if self.sequence_id is not None:
            text += f"{self.sequence_id}:"
        if self.sequence_name:
            text += f"{self.sequence_name}. "
        text += f"Status - {self.status}"
        if self.step_states and self.status != Status.NOT_EXECUTED:
            text += f". States {len(self.step_states)}\nStep status summary:"
            for number in sorted(self.step_states, key=_step_order):
                state = self.step_states[number]
                text += f"\n\t{number}:'{state.name}' - {state.status}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence_id": self.sequence_id,
            "sequence_name": self.sequence_name,
            "sequence_runner": self.sequence_runner,
            "status": str(self.status),
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "stop_time": self.stop_time.isoformat() if self.stop_time else None,
            "exec_time": self.exec_time,
            "steps": {
                number: self.step_states[number].to_dict()
                for number in sorted(self.step_states, key=_step_order)
            },
        }

    def __str__(self) -> str:
        return (
            f"'{self.sequence_id}':'{self.sequence_name}' on '{self.sequence_runner}' "
            f"started at {self.start_time}.{len(self.step_states)} steps"
        )


def _step_order(number: Optional[int]) -> tuple:
    # unnumbered steps go last
    return (number is None, number if number is not None else 0)


class CommandSequence:
    """
    A list of commands executed one after the other.

    Steps run in the order they were added. Depending on a step's exit
    strategy the sequence stops at a failing step or carries on; in both
    cases a single failing step marks the whole run as failed.

    The state of the active run is published to observers: every callback
    registered with add_observer() is called as
    `callback(sequence_status=<SequenceStatus>)` when the run starts, when
    each step starts, after each step ran, when the run ends, on reset()
    and on add_step().

    A CommandSequence is re-runnable: run() and reset() discard the state
    of the previous run. It never spawns threads of its own.
    """

    def __init__(self, name: str, sequence_runner: str = ""):
        self.name = name
        self.steps: List[Command] = []
        self._sequence_runner = sequence_runner
        self._sequence_id: Optional[Any] = None
        self._observers: List[Observer] = []
        self.reset()

    @property
    def sequence_runner(self) -> str:
        return self._sequence_runner

    @sequence_runner.setter
    def sequence_runner(self, value: str) -> None:
        self._sequence_runner = value
        self.state.sequence_runner = value

    @property
    def sequence_id(self) -> Optional[Any]:
        return self._sequence_id

    @sequence_id.setter
    def sequence_id(self, value: Optional[Any]) -> None:
        self._sequence_id = value
        self.state.sequence_id = value

    # ------------------------------------------------------------------
    # observers
    # ------------------------------------------------------------------

    def add_observer(self, observer: Observer) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def delete_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def count_observers(self) -> int:
        return len(self._observers)

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(sequence_status=self.state)

    # ------------------------------------------------------------------
    # execution
    # ------------------------------------------------------------------

    def run(self, context: Any = None) -> Status:
        """
        Execute all steps in order, honouring each step's exit strategy.

        Never raises because of a failing step; the outcome is reported
        through `state` and returned.
        """
        self.state.start_time = datetime.now()
        self.state.stop_time = None
        self.state.status = Status.RUNNING
        self._notify()

        # an empty sequence is never a full success
        running_status = Status.SUCCESS if self.steps else Status.WARNING
        executed: List[Command] = []

        for step in self.steps:
            step.status = Status.RUNNING
            self.state.submit_step(step)
            self._notify()

            result = step.run(context)
            executed.append(step)
            # re-announced as running; the terminal snapshot is recorded
            # once the run is over
            running = dataclasses.replace(StepState.of(step), status=Status.RUNNING)
            self.state.submit_state(step.number, running)
            self._notify()

            if result == Status.ERROR:
                running_status = Status.ERROR
                logger.info("step %s:%r failed", step.number, step.name)
                if step.strategy == ExitStrategy.FAIL_ON_ERROR:
                    self.state.status = Status.ERROR
                    break
            elif result == Status.WARNING:
                if running_status != Status.ERROR:
                    running_status = Status.WARNING
                if step.strategy == ExitStrategy.FLUNK_ON_WARNING:
                    running_status = Status.ERROR
                logger.info("step %s:%r finished with warnings", step.number, step.name)
                if step.strategy == ExitStrategy.FAIL_ON_WARNING:
                    self.state.status = Status.ERROR
                    break

        for step in executed:
            self.state.submit_step(step)
        self.state.stop_time = datetime.now()
        self.state.status = running_status
        self._notify()
        return self.state.status

    def add_step(
        self,
        step: Command,
        exit_strategy: Union[ExitStrategy, str] = ExitStrategy.FAIL_ON_ERROR,
    ) -> Command:
        """
        Append a copy of `step` to the end of the sequence and return it.

        The sequence owns the copy; the object passed in is never touched
        by run() or reset(). Inspect the returned copy for results.

        Exit strategies:
          - fail_on_error: stop the sequence if the step fails (default,
            also used for unrecognized values)
          - flunk_on_error: mark the sequence failed but continue
          - fail_on_warning: stop the sequence if the step warns
          - flunk_on_warning: mark the sequence failed on a warning but
            continue
        """
        owned = copy.copy(step)
        owned.reset()
        owned.number = len(self.steps)
        owned.strategy = normalize_strategy(exit_strategy)
        self.steps.append(owned)
        self.state.submit_step(owned)
        self._notify()
        return owned

    def reset(self) -> None:
        """Discard the state of the previous run."""
        for step in self.steps:
            step.reset()
        self.state = SequenceStatus(self.name, self.steps)
        self.state.sequence_runner = self._sequence_runner
        self.state.sequence_id = self._sequence_id
        self._notify()

    def completed(self) -> bool:
        return self.state.completed()

    def __str__(self) -> str:
        return f"{self.sequence_id}:{self.name} on {self.sequence_runner}, {len(self.steps)} steps"
