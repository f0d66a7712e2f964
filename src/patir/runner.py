# runner.py
from __future__ import annotations

import runpy
from pathlib import Path
from typing import Any, Optional

from .sequence import CommandSequence, SequenceStatus
from .ui.console import Console, StatusPrinter, get_console


# ----------------------------------------------------------------------
# Workflow loading (local file)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> CommandSequence:
    """
    Load a command sequence from a python file path.

    The file must define either:
      - workflow() -> CommandSequence
      - SEQUENCE = CommandSequence(...)

    Returns:
      CommandSequence
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"patir_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    seq = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        seq = globals_dict["workflow"]()
    elif "SEQUENCE" in globals_dict:
        seq = globals_dict["SEQUENCE"]

    if not isinstance(seq, CommandSequence):
        raise TypeError(
            "Workflow must return/define a CommandSequence. "
            "Define workflow() -> CommandSequence or SEQUENCE = sequence(...)."
        )

    return seq


# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------

def run_sequence(
    seq: CommandSequence,
    context: Any = None,
    console: Optional[Console] = None,
) -> SequenceStatus:
    """Run `seq` with live step reporting on the console and return its status."""
    printer = StatusPrinter(console or get_console())
    seq.add_observer(printer)
    try:
        seq.run(context)
    finally:
        seq.delete_observer(printer)
    return seq.state
