"""Tests for runner base module and the error types it reports."""

from pathlib import Path

from assetpipe.errors import ChildFailure, CompositionError, TransformError
from assetpipe.runners.base import RunnerCallbacks, RunResult


class TestRunResult:
    """Tests for RunResult dataclass."""

    def test_default_values(self):
        """Test default values."""
        result = RunResult(success=True, task_name="build")
        assert result.success
        assert result.task_name == "build"
        assert result.tasks_completed == 0
        assert result.tasks_failed == 0
        assert result.duration_seconds == 0.0
        assert result.errors == []

    def test_exit_code(self):
        """Test success maps to 0 and failure to 1."""
        assert RunResult(success=True, task_name="build").exit_code == 0
        assert RunResult(success=False, task_name="build").exit_code == 1

    def test_errors_list(self):
        """Test errors list."""
        result = RunResult(success=False, task_name="build", errors=["Error 1", "Error 2"])
        assert len(result.errors) == 2
        assert "Error 1" in result.errors


class TestRunnerCallbacks:
    """Tests for RunnerCallbacks dataclass."""

    def test_default_callbacks_none(self):
        """Test all callbacks are None by default."""
        cb = RunnerCallbacks()
        assert cb.on_task_start is None
        assert cb.on_task_complete is None
        assert cb.on_run_complete is None
        assert cb.on_binding_state is None
        assert cb.on_watch_error is None

    def test_custom_callback(self):
        """Test custom callback assignment."""
        calls = []

        def on_complete(name, success, seconds):
            calls.append((name, success))

        cb = RunnerCallbacks(on_task_complete=on_complete)
        cb.on_task_complete("styles", True, 0.1)

        assert calls == [("styles", True)]


class TestErrors:
    """Tests for error formatting."""

    def test_transform_error_with_path(self):
        """Test the message names the task and the input."""
        error = TransformError("styles", "Undefined variable", path=Path("scss/main.scss"))
        assert str(error) == "[styles] (scss/main.scss) Undefined variable"

    def test_transform_error_wraps_exception(self):
        """Test an exception cause is kept and rendered."""
        cause = OSError("disk full")
        error = TransformError("fonts", cause)
        assert error.cause is cause
        assert str(error) == "[fonts] disk full"

    def test_composition_error_message(self):
        """Test every failing child is listed with its position."""
        error = CompositionError(
            "assets",
            [
                ChildFailure(0, "scripts", TransformError("scripts", "a")),
                ChildFailure(2, "html", TransformError("html", "b")),
            ],
        )
        assert str(error) == "assets failed: #0 scripts: [scripts] a; #2 html: [html] b"
        assert error.failed_names == ["scripts", "html"]
