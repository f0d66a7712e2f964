"""
Tests for SequenceStatus: the status ratchet, completion and reporting.
"""
from datetime import datetime, timedelta

from patir import Command, ExitStrategy, SequenceStatus, Status, StepState


def numbered(command, number):
    command.number = number
    return command


class TestSequenceStatus:
    """Tests for aggregating step snapshots."""

    def test_new(self):
        st = SequenceStatus("sequence")
        assert not st.running()
        assert not st.success()
        assert not st.executed()
        assert st.status == Status.NOT_EXECUTED
        assert st.step_state(3) is None
        assert st.start_time is None
        assert st.stop_time is None

    def test_seeded_with_steps(self, void):
        st = SequenceStatus("sequence", [numbered(void, 0)])
        assert st.step_state(0) == StepState("void", Status.NOT_EXECUTED)
        assert st.status == Status.NOT_EXECUTED

    def test_step_equal(self, void, warning, error):
        st = SequenceStatus("sequence")
        step1 = numbered(void, 1)
        step2 = numbered(warning, 2)
        step3 = numbered(error, 3)
        for step in (step1, step2, step3):
            step.run()

        st.submit_step(step1)
        assert st.status == Status.SUCCESS
        assert st.step_state(1).status == step1.status
        st.submit_step(step2)
        assert st.status == Status.WARNING
        st.submit_step(step3)
        assert st.status == Status.ERROR

        # overwriting a snapshot never lowers the overall status
        step2.number = 1
        st.submit_step(step2)
        assert st.step_state(1).status == Status.WARNING
        assert st.status == Status.ERROR
        st.submit_step(step1)
        assert st.status == Status.ERROR
        assert st.summary()

    def test_warning_never_returns_to_success(self, void, warning):
        st = SequenceStatus("sequence")
        numbered(warning, 0).run()
        numbered(void, 1).run()
        st.submit_step(warning)
        st.submit_step(void)
        assert st.status == Status.WARNING

    def test_not_executed_snapshot_changes_nothing(self, void):
        st = SequenceStatus("sequence")
        numbered(void, 0).run()
        st.submit_step(void)
        st.submit_state(1, StepState("later", Status.NOT_EXECUTED))
        assert st.status == Status.SUCCESS
        assert st.step_state(1).name == "later"

    def test_running_holds_until_cleared(self, error):
        st = SequenceStatus("sequence")
        st.submit_state(0, StepState("first", Status.RUNNING))
        assert st.running()

        numbered(error, 1).run()
        st.submit_step(error)
        assert st.running()
        assert st.step_state(1).status == Status.ERROR

    def test_completed(self, void, warning, error):
        st = SequenceStatus("sequence")
        step1 = numbered(void, 1)
        step2 = numbered(warning, 2)
        step3 = numbered(error, 3)
        step4 = numbered(Command("last"), 4)
        for step in (step1, step2, step3, step4):
            st.submit_step(step)
        assert not st.completed()

        step1.run()
        st.submit_step(step1)
        assert not st.completed()

        step2.run()
        st.submit_step(step2)
        assert not st.completed()
        step2.strategy = ExitStrategy.FAIL_ON_WARNING
        st.submit_step(step2)
        assert st.completed()
        step2.strategy = None
        st.submit_step(step2)
        assert not st.completed()

        step3.run()
        step3.strategy = ExitStrategy.FAIL_ON_ERROR
        st.submit_step(step3)
        assert st.completed()
        step3.strategy = None
        st.submit_step(step3)
        assert not st.completed()

        step4.run()
        st.submit_step(step4)
        assert st.completed()


class TestReporting:
    """Tests for summary(), to_dict() and nesting."""

    def test_summary_before_run(self):
        st = SequenceStatus("build")
        assert st.summary() == "build. Status - not_executed"

    def test_summary_is_sorted(self):
        st = SequenceStatus("build")
        st.sequence_id = 12
        for number in (10, 2, 0, 1):
            st.submit_state(number, StepState(f"step{number}", Status.SUCCESS))

        assert st.summary() == (
            "12:build. Status - success. States 4\n"
            "Step status summary:"
            "\n\t0:'step0' - success"
            "\n\t1:'step1' - success"
            "\n\t2:'step2' - success"
            "\n\t10:'step10' - success"
        )

    def test_to_dict(self):
        st = SequenceStatus("build")
        st.sequence_runner = "host"
        st.start_time = datetime(2024, 1, 31, 12, 0, 0)
        st.stop_time = st.start_time + timedelta(seconds=3)
        st.submit_state(0, StepState("compile", Status.SUCCESS, "ok", 1.5, "", ExitStrategy.FLUNK_ON_ERROR))

        data = st.to_dict()
        assert data["sequence_name"] == "build"
        assert data["sequence_runner"] == "host"
        assert data["status"] == "success"
        assert data["start_time"] == "2024-01-31T12:00:00"
        assert data["exec_time"] == 3
        assert data["steps"][0] == {
            "name": "compile",
            "status": "success",
            "output": "ok",
            "duration": 1.5,
            "error": "",
            "strategy": "flunk_on_error",
        }

    def test_str(self):
        st = SequenceStatus("build")
        st.sequence_id = 1
        st.sequence_runner = "host"
        assert str(st) == "'1':'build' on 'host' started at None.0 steps"

    def test_nested_status(self, void):
        inner = SequenceStatus("inner")
        inner.sequence_id = 0
        inner.submit_step(numbered(void, 0))
        void.run()
        inner.submit_step(void)

        outer = SequenceStatus("outer")
        outer.submit_step(inner)
        assert outer.status == Status.SUCCESS
        assert outer.step_state(0).name == "inner"
        assert "inner" in outer.step_state(0).output
