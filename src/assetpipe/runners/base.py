"""Shared runner types: run summary, progress callbacks and the runner protocol."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..workflow import Task


@dataclass
class RunResult:
    """Result of running a top-level task."""

    success: bool
    task_name: str
    tasks_completed: int = 0
    tasks_failed: int = 0
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


@dataclass
class RunnerCallbacks:
    """
    Callbacks for runner progress reporting.

    Lets the CLI print progress while the executor and watcher stay free of Rich.
    Every callback is optional; None means not called.
    """

    # Leaf lifecycle
    on_task_start: Callable[[str], None] | None = None  # task name
    on_task_complete: Callable[[str, bool, float], None] | None = None  # task name, success, seconds

    # Top-level lifecycle
    on_run_complete: Callable[[RunResult], None] | None = None

    # Watch mode
    on_binding_state: Callable[[str, str], None] | None = None  # pattern, state value
    on_watch_error: Callable[[str, Exception], None] | None = None  # pattern, error


class RunnerProtocol(Protocol):
    """Protocol for task runners."""

    async def run(self, task: "Task") -> RunResult:
        """
        Execute a task tree to completion.

        Args:
            task: Root of the tree to execute

        Returns:
            RunResult with execution summary
        """
        ...
