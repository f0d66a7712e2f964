"""
Tests for workflow loading and running with console reporting.
"""
import textwrap

import pytest

from patir import CommandSequence, Status, load_workflow, run_sequence, sequence, sh
from patir.ui.console import Console


WORKFLOW = textwrap.dedent(
    """
    from patir import build


    def workflow():
        return build("demo").sh("hello", "echo hello").sh("bye", "echo bye").build()
    """
)

SEQUENCE_WORKFLOW = textwrap.dedent(
    """
    from patir import sequence, sh

    SEQUENCE = sequence("constant", sh("hello", "echo hello"))
    """
)


class TestLoadWorkflow:
    """Tests for load_workflow()."""

    def test_workflow_function(self, tmp_path):
        path = tmp_path / "demo_workflow.py"
        path.write_text(WORKFLOW)
        seq = load_workflow(path)
        assert isinstance(seq, CommandSequence)
        assert seq.name == "demo"
        assert len(seq.steps) == 2

    def test_sequence_constant(self, tmp_path):
        path = tmp_path / "constant_workflow.py"
        path.write_text(SEQUENCE_WORKFLOW)
        assert load_workflow(str(path)).name == "constant"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_workflow(tmp_path / "absent.py")

    def test_not_python(self, tmp_path):
        path = tmp_path / "workflow.txt"
        path.write_text(WORKFLOW)
        with pytest.raises(ValueError):
            load_workflow(path)

    def test_no_sequence(self, tmp_path):
        path = tmp_path / "empty_workflow.py"
        path.write_text("VALUE = 1\n")
        with pytest.raises(TypeError):
            load_workflow(path)


class TestRunSequence:
    """Tests for run_sequence()."""

    def test_reports_steps(self, capsys):
        seq = sequence("demo", sh("hello", "echo hello"), sh("bye", "echo bye"))
        status = run_sequence(seq, console=Console())

        assert status is seq.state
        assert status.status == Status.SUCCESS
        out = capsys.readouterr().out
        assert out.count("STEP 0: hello") == 1
        assert out.count("STEP 1: bye") == 1
        assert seq.count_observers() == 0

    def test_failing_step(self, capsys):
        seq = sequence("demo", sh("broken", "exit 3"), sh("skipped", "echo never"))
        status = run_sequence(seq, console=Console())

        assert status.status == Status.ERROR
        assert status.step_state(1).status == Status.NOT_EXECUTED
        out = capsys.readouterr().out
        assert "STEP 0: broken" in out
        assert "skipped" not in out

    def test_results(self, capsys):
        seq = sequence("demo", (sh("broken", "echo oops >&2; exit 3"), "flunk_on_error"))
        status = run_sequence(seq, console=Console())
        Console().print_results(status)

        out = capsys.readouterr().out
        assert "0: broken - ERROR" in out
        assert "Error: oops" in out
        assert "STATUS: ERROR" in out
