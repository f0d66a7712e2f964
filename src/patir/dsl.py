# src/patir/dsl.py
from __future__ import annotations

from typing import Any, Callable, List, Optional, Tuple, Union

from .command import BlockCommand, Command, ProcessCommand
from .model import ExitStrategy
from .sequence import CommandSequence

StepDef = Union[Command, Tuple[Command, Union[ExitStrategy, str]]]


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(
    name: str,
    cmd: str,
    *,
    cwd: str | None = None,
    timeout: float | None = None,
) -> ProcessCommand:
    """Create a shell step."""
    return ProcessCommand(
        name=name,
        cmd=cmd,
        working_directory=cwd or ".",
        timeout=timeout,
    )


def block(
    name: str,
    fn: Optional[Callable[[BlockCommand], Any]] = None,
    *,
    cwd: str | None = None,
):
    """
    Create a step running a Python callable.

    Works directly, block("check", fn), or as a decorator:

        @block("check")
        def check(cmd):
            cmd.output = "all good"
    """
    if fn is not None:
        return BlockCommand(name, fn, working_directory=cwd)

    def decorator(func: Callable[[BlockCommand], Any]) -> BlockCommand:
        return BlockCommand(name, func, working_directory=cwd)

    return decorator


# ---------------------------------------------------------------------
# Functional sequence helper
# ---------------------------------------------------------------------

def sequence(
    name: str,
    *steps: StepDef,  # allow: sequence("x", sh(...), (sh(...), "flunk_on_error"))
    sequence_runner: str = "",
    sequence_id: Any = None,
) -> CommandSequence:
    seq = CommandSequence(name, sequence_runner)
    if sequence_id is not None:
        seq.sequence_id = sequence_id
    for item in steps:
        if isinstance(item, tuple):
            command, strategy = item
            seq.add_step(command, strategy)
        else:
            seq.add_step(item)
    return seq


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class SequenceBuilder:
    def __init__(self, name: str):
        self.name = name
        self._steps: List[Tuple[Command, Union[ExitStrategy, str]]] = []
        self._runner: str = ""
        self._sequence_id: Any = None

    def define_step(
        self,
        command: Command,
        strategy: Union[ExitStrategy, str] = ExitStrategy.FAIL_ON_ERROR,
    ):
        self._steps.append((command, strategy))
        return self

    def sh(
        self,
        name: str,
        cmd: str,
        *,
        cwd: str | None = None,
        timeout: float | None = None,
        strategy: Union[ExitStrategy, str] = ExitStrategy.FAIL_ON_ERROR,
    ):
        return self.define_step(sh(name, cmd, cwd=cwd, timeout=timeout), strategy)

    def block(
        self,
        name: str,
        fn: Callable[[BlockCommand], Any],
        *,
        cwd: str | None = None,
        strategy: Union[ExitStrategy, str] = ExitStrategy.FAIL_ON_ERROR,
    ):
        return self.define_step(block(name, fn, cwd=cwd), strategy)

    def run_by(self, runner: str):
        self._runner = runner
        return self

    def with_id(self, sequence_id: Any):
        self._sequence_id = sequence_id
        return self

    def build(self) -> CommandSequence:
        return sequence(
            self.name,
            *self._steps,
            sequence_runner=self._runner,
            sequence_id=self._sequence_id,
        )


def build(name: str) -> SequenceBuilder:
    """Convenience: build('release').sh('tag', 'git tag v1').build()"""
    return SequenceBuilder(name)
