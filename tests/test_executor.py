"""Tests for the async executor."""

import asyncio

import pytest

from assetpipe.errors import CompositionError, TransformError
from assetpipe.runners import AsyncRunner, RunnerCallbacks, invoke
from assetpipe.workflow.tasks import Leaf, concurrent, sequential


def recording(name, log, delay=0.0, fail=None):
    """Leaf that logs start/end events and optionally fails."""

    async def body():
        log.append(f"{name}:start")
        if delay:
            await asyncio.sleep(delay)
        if fail is not None:
            log.append(f"{name}:fail")
            raise fail
        log.append(f"{name}:end")

    return Leaf(name=name, body=body)


class TestLeaf:
    """Tests for running a single leaf."""

    def test_leaf_runs_body(self):
        """Test the body is awaited."""
        log = []
        asyncio.run(invoke(recording("a", log)))
        assert log == ["a:start", "a:end"]

    def test_generic_exception_is_wrapped(self):
        """Test an arbitrary exception becomes a TransformError naming the task."""
        log = []
        with pytest.raises(TransformError) as exc_info:
            asyncio.run(invoke(recording("styles", log, fail=RuntimeError("boom"))))

        assert exc_info.value.task == "styles"
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert "boom" in str(exc_info.value)

    def test_transform_error_passes_through(self):
        """Test a TransformError raised by the body is not wrapped twice."""
        error = TransformError("styles", "bad input")
        with pytest.raises(TransformError) as exc_info:
            asyncio.run(invoke(recording("styles", [], fail=error)))
        assert exc_info.value is error

    def test_callbacks(self):
        """Test start/complete callbacks fire for a leaf."""
        events = []
        cb = RunnerCallbacks(
            on_task_start=lambda name: events.append(("start", name)),
            on_task_complete=lambda name, ok, seconds: events.append(("done", name, ok)),
        )
        asyncio.run(invoke(recording("a", []), cb))
        assert events == [("start", "a"), ("done", "a", True)]


class TestSequential:
    """Tests for sequential composition."""

    def test_runs_in_order(self):
        """Test each child starts only after the previous one completed."""
        log = []
        tree = sequential(recording("a", log, delay=0.02), recording("b", log), recording("c", log))
        asyncio.run(invoke(tree))
        assert log == ["a:start", "a:end", "b:start", "b:end", "c:start", "c:end"]

    def test_stops_at_first_failure(self):
        """Test a failing child stops the chain and is the one reported."""
        log = []
        tree = sequential(
            recording("a", log),
            recording("b", log, fail=ValueError("broken")),
            recording("c", log),
            name="chain",
        )
        with pytest.raises(CompositionError) as exc_info:
            asyncio.run(invoke(tree))

        assert "c:start" not in log
        error = exc_info.value
        assert error.node == "chain"
        assert error.failed_names == ["b"]
        assert error.failures[0].index == 1
        assert isinstance(error.failures[0].error, TransformError)

    def test_single_child(self):
        """Test a one-child sequence behaves like the child."""
        log = []
        asyncio.run(invoke(sequential(recording("a", log))))
        assert log == ["a:start", "a:end"]


class TestConcurrent:
    """Tests for concurrent composition."""

    def test_children_overlap(self):
        """Test every child starts before any of them finishes."""
        log = []
        tree = concurrent(recording("a", log, delay=0.02), recording("b", log, delay=0.02))
        asyncio.run(invoke(tree))
        assert log[:2] == ["a:start", "b:start"]
        assert sorted(log[2:]) == ["a:end", "b:end"]

    def test_failure_waits_for_siblings(self):
        """Test siblings still run to completion when one child fails."""
        log = []
        tree = concurrent(
            recording("a", log, delay=0.02),
            recording("b", log, fail=OSError("disk")),
            recording("c", log, delay=0.04),
            name="assets",
        )
        with pytest.raises(CompositionError) as exc_info:
            asyncio.run(invoke(tree))

        assert "a:end" in log
        assert "c:end" in log
        assert log.index("b:fail") < log.index("c:end")
        assert exc_info.value.failed_names == ["b"]

    def test_reports_every_failure(self):
        """Test all failing children are aggregated in declaration order."""
        tree = concurrent(
            recording("a", [], delay=0.02, fail=ValueError("one")),
            recording("b", []),
            recording("c", [], fail=ValueError("two")),
        )
        with pytest.raises(CompositionError) as exc_info:
            asyncio.run(invoke(tree))

        assert exc_info.value.failed_names == ["a", "c"]
        assert [f.index for f in exc_info.value.failures] == [0, 2]

    def test_nested_compositions(self):
        """Test a sequence waits for a nested concurrent group to settle."""
        log = []
        tree = sequential(
            recording("clean", log),
            concurrent(recording("x", log, delay=0.02), recording("y", log)),
            recording("after", log),
        )
        asyncio.run(invoke(tree))
        assert log.index("x:end") < log.index("after:start")
        assert log.index("y:end") < log.index("after:start")

    def test_leaf_errors_flatten(self):
        """Test nested failures flatten to the leaf errors that caused them."""
        tree = sequential(
            recording("a", []),
            concurrent(recording("b", [], fail=ValueError("x")), recording("c", [], fail=ValueError("y"))),
        )
        with pytest.raises(CompositionError) as exc_info:
            asyncio.run(invoke(tree))

        assert [e.task for e in exc_info.value.leaf_errors()] == ["b", "c"]


class TestAsyncRunner:
    """Tests for AsyncRunner."""

    def test_success_result(self):
        """Test a successful run reports the number of leaves completed."""
        tree = sequential(recording("a", []), recording("b", []), name="build")
        result = asyncio.run(AsyncRunner().run(tree))

        assert result.success is True
        assert result.task_name == "build"
        assert result.tasks_completed == 2
        assert result.tasks_failed == 0
        assert result.exit_code == 0

    def test_failure_result(self):
        """Test a failed run never raises and collects the leaf errors."""
        tree = concurrent(recording("a", []), recording("b", [], fail=ValueError("bad")), name="assets")
        completed = []
        runner = AsyncRunner(RunnerCallbacks(on_run_complete=completed.append))
        result = asyncio.run(runner.run(tree))

        assert result.success is False
        assert result.exit_code == 1
        assert result.tasks_completed == 1
        assert result.tasks_failed == 1
        assert len(result.errors) == 1
        assert "[b]" in result.errors[0]
        assert completed == [result]

    def test_single_leaf_failure(self):
        """Test a failing top-level leaf is reported too."""
        result = asyncio.run(AsyncRunner().run(recording("clean", [], fail=OSError("busy"))))
        assert result.success is False
        assert result.errors == ["[clean] busy"]
