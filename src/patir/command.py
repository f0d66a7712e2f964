# command.py
from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
import threading
import time
import traceback
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import ParameterError
from .model import ExitStrategy, Status

logger = logging.getLogger(__name__)


class Command:
    """
    Base class for anything that can be executed as a step.

    Subclasses implement run(), which must set status, output, error and
    exec_time and must never raise: failures are reported as Status.ERROR
    with a readable message in `error`.

    The default run() marks the command successful, which makes plain
    Command instances handy as no-op steps.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name or ""
        # position in a sequence and failure policy, set by CommandSequence
        self.number: Optional[int] = None
        self.strategy: Optional[ExitStrategy] = None
        self.reset()

    def run(self, context: Any = None) -> Status:
        self.status = Status.SUCCESS
        return self.status

    def reset(self) -> None:
        """Return to the state of a command that was never executed."""
        self.backtrace = ""
        self.exec_time: float = 0
        self.output = ""
        self.error = ""
        self.status = Status.NOT_EXECUTED

    def success(self) -> bool:
        return self.status == Status.SUCCESS

    def executed(self) -> bool:
        return self.status != Status.NOT_EXECUTED


# ----------------------------------------------------------------------
# External processes
# ----------------------------------------------------------------------

class ProcessParams(BaseModel):
    """Validated parameters of a ProcessCommand."""
    cmd: str = Field(min_length=1)
    name: Optional[str] = None
    timeout: Optional[float] = Field(default=None, gt=0)
    working_directory: str = "."


def _kill(proc: subprocess.Popen, group: bool) -> None:
    if group:
        # the shell runs in its own session, take its children down too
        os.killpg(proc.pid, signal.SIGKILL)
    else:
        proc.kill()


class _Watchdog:
    """Kills a child process once its time budget is used up."""

    def __init__(self, proc: subprocess.Popen, timeout: float, group: bool):
        self.proc = proc
        self.timeout = timeout
        self.group = group
        self.fired = False
        self.kill_error = ""
        self._timer = threading.Timer(timeout, self._expire)
        self._timer.daemon = True

    def __enter__(self) -> _Watchdog:
        self._timer.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._timer.cancel()

    def _expire(self) -> None:
        # exited on its own right before the deadline
        if self.proc.poll() is not None:
            return
        self.fired = True
        try:
            _kill(self.proc, self.group)
        except OSError as e:
            self.kill_error = (
                f"Failed to kill child process {self.proc.pid} after timeout: {e}"
            )


class ProcessCommand(Command):
    """
    Runs a command line through the shell.

    Accepted parameters (a mapping, keyword arguments, or both):
      - cmd: the command line (required, ParameterError if missing)
      - name: descriptive name (defaults to "")
      - timeout: seconds after which the process is killed and the
        command fails (no timeout if omitted)
      - working_directory: created on run if missing (defaults to ".")
    """

    def __init__(self, params: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        merged = {**(params or {}), **kwargs}
        try:
            validated = ProcessParams.model_validate(merged)
        except ValidationError as e:
            raise ParameterError(f"Invalid command parameters: {e}") from e

        super().__init__(validated.name or "")
        self.cmd = validated.cmd
        self.timeout = validated.timeout
        self.working_directory = validated.working_directory

    def run(self, context: Any = None) -> Status:
        """
        Run the command line and wait for it (or for the timeout).

        Status is SUCCESS only if the process exited on its own with code 0.
        A process terminated by a signal is reported as WARNING.

        Without a timeout the shell stays in the caller's process group, so
        a Ctrl-C from the terminal reaches it. If the wait is interrupted
        anyway, the process is killed before the exception propagates.
        """
        start = time.monotonic()
        self.error = ""
        self.output = ""
        try:
            Path(self.working_directory).mkdir(parents=True, exist_ok=True)
            group = bool(self.timeout) and os.name == "posix"
            proc = subprocess.Popen(
                self.cmd,
                shell=True,
                cwd=self.working_directory,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=group,
            )
            try:
                self._wait(proc, group)
            except BaseException:
                with contextlib.suppress(OSError):
                    _kill(proc, group)
                proc.wait()
                raise
        except Exception as e:
            logger.debug("could not run %r", self.cmd, exc_info=True)
            self.error += f"\n{e}"
            self.status = Status.ERROR

        self.exec_time = time.monotonic() - start
        if self.status != Status.SUCCESS:
            logger.info("%s finished with status %s", self, self.status)
        return self.status

    def _wait(self, proc: subprocess.Popen, group: bool) -> None:
        if not self.timeout:
            self.output, self.error = proc.communicate()
            self.status = self._status_from(proc.returncode)
            return

        with _Watchdog(proc, self.timeout, group) as watchdog:
            self.output, err = proc.communicate()
        if watchdog.fired:
            self.error = f"Command timed out after {self.timeout:g}s"
            if watchdog.kill_error:
                self.error += f"\n{watchdog.kill_error}"
            if err:
                self.error += f"\n{err}"
            self.status = Status.ERROR
        else:
            self.error = err
            self.status = self._status_from(proc.returncode)

    @staticmethod
    def _status_from(returncode: Optional[int]) -> Status:
        # negative codes mean the process did not exit by itself
        if returncode is None or returncode < 0:
            return Status.WARNING
        if returncode == 0:
            return Status.SUCCESS
        return Status.ERROR

    def __str__(self) -> str:
        return f"{self.name}: {self.cmd} in {self.working_directory}"


# ----------------------------------------------------------------------
# In-process blocks
# ----------------------------------------------------------------------

@contextlib.contextmanager
def inside_directory(path: str) -> Iterator[None]:
    """
    Change the process working directory for the duration of the block.

    The working directory is global to the process, so this is not safe
    to use from several threads at once.
    """
    original_cwd = os.getcwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(original_cwd)


class BlockCommand(Command):
    """
    Wraps a Python callable so it can be used like any other Command.

    The callable receives the BlockCommand itself, so it can set `output`
    and `error` and read the run `context`. Returning normally means
    success; raising marks the command as failed and appends the
    exception message to `error`.

    Example:

        def prompt(cmd):
            if not click.confirm(f"{cmd.context}?"):
                cmd.error = "Why not?"
                raise RuntimeError("You did not agree")

        BlockCommand("prompt", prompt)

    Blocks are executed in `working_directory`, which changes the
    directory of the whole process: do not run BlockCommands concurrently
    from several threads.
    """

    def __init__(
        self,
        name: str,
        block: Optional[Callable[[BlockCommand], Any]] = None,
        working_directory: Optional[str] = None,
    ):
        if block is None or not callable(block):
            raise ParameterError(f"A callable must be provided to BlockCommand {name!r}")
        super().__init__(name)
        self.block = block
        self.working_directory = working_directory or "."
        # only valid while run() executes
        self.context: Any = None

    def run(self, context: Any = None) -> Status:
        self.context = context
        self.error = ""
        self.output = ""
        self.backtrace = ""
        start = time.monotonic()
        try:
            with inside_directory(self.working_directory):
                self.block(self)
                self.status = Status.SUCCESS
        except Exception as e:
            self.error += f"\n{e}"
            self.backtrace = traceback.format_exc()
            self.status = Status.ERROR
            logger.debug("block %r failed: %s", self.name, e)
        finally:
            self.exec_time = time.monotonic() - start
            self.context = None
        return self.status

    def __str__(self) -> str:
        return f"{self.name}: <block> in {self.working_directory}"
