# cli.py
from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from patir.log import setup_logger
from patir.model import Status
from patir.runner import load_workflow, run_sequence
from patir.sequence import CommandSequence
from patir.ui.console import Console, set_console, get_console

DEFAULT_WORKFLOW = "patir_workflow.py"

WORKFLOW_CONTRACT = (
    "A workflow file defines workflow() returning a CommandSequence,\n"
    "or a module level SEQUENCE = sequence(...)."
)


def discover_workflow(workflow_arg: str | None, directory: Path = Path(".")) -> Path:
    """
    Pick the workflow file to load.

    An explicit --workflow wins (the .py suffix may be left out). Otherwise
    patir_workflow.py is used when present, else the only *_workflow.py
    in `directory`.

    Raises:
        click.ClickException: no file, or no way to choose between several
    """
    if workflow_arg:
        path = Path(workflow_arg)
        if not path.exists() and path.suffix != ".py":
            path = path.with_name(path.name + ".py")
        if not path.is_file():
            raise click.ClickException(f"Workflow file not found: {workflow_arg}")
        return path

    default = directory / DEFAULT_WORKFLOW
    if default.is_file():
        return default

    candidates = sorted(p for p in directory.glob("*_workflow.py") if p.is_file())
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise click.ClickException(
            f"No {DEFAULT_WORKFLOW} or *_workflow.py found in {directory.resolve()}.\n"
            f"{WORKFLOW_CONTRACT}"
        )
    names = ", ".join(p.name for p in candidates)
    raise click.ClickException(
        f"Several workflow files found ({names}), pick one with --workflow."
    )


def load_or_exit(console: Console, workflow_path: Path) -> CommandSequence:
    """Load a workflow, reporting failures the way the CLI does everywhere."""
    try:
        seq = load_workflow(workflow_path)
    except TypeError as e:
        console.print_error("Not a workflow", str(e), suggestion=WORKFLOW_CONTRACT)
        sys.exit(1)
    except Exception as e:
        console.print_error(
            "Failed to load workflow",
            f"Could not load workflow from {workflow_path}",
            details=[str(e)],
        )
        sys.exit(1)

    console.print_debug(
        f"loaded {workflow_path.resolve()}: sequence {seq.name!r}, "
        f"{len(seq.steps)} steps, runner {seq.sequence_runner!r}"
    )
    return seq


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--log-file", default=None, help="Write the log to this file instead of stdout")
@click.pass_context
def cli(ctx, debug, log_file):
    """patir: run sequences of shell commands and Python blocks."""
    console = Console(debug=debug)
    set_console(console)
    setup_logger(log_file, "debug" if debug else "silent")
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)",
)
@click.option("--context", default=None, help="Context value passed to every step")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the final status as JSON")
@click.pass_context
def run(ctx, workflow, context, as_json):
    """Run a patir workflow."""
    console = get_console()

    workflow_path = discover_workflow(workflow)
    seq = load_or_exit(console, workflow_path)

    try:
        console.print_run_started(
            workflow=workflow_path.name,
            sequence=seq.name,
            step_count=len(seq.steps),
        )

        status = run_sequence(seq, context=context, console=console)

        if as_json:
            console.print_info(json.dumps(status.to_dict(), indent=2))
        else:
            console.print_results(status)

        if status.status == Status.ERROR:
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)",
)
def show(workflow):
    """List the steps of a workflow without running them."""
    console = get_console()

    seq = load_or_exit(console, discover_workflow(workflow))
    console.print_plan(seq)


if __name__ == "__main__":
    cli()
