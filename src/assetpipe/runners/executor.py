"""Async executor - Runs task trees on a single asyncio event loop."""

import asyncio
import logging
import time

from ..errors import AssetPipeError, ChildFailure, CompositionError, TransformError
from ..workflow.tasks import Concurrent, Leaf, NodeKind, Sequential, Task
from .base import RunnerCallbacks, RunResult

logger = logging.getLogger(__name__)


async def invoke(task: Task, callbacks: RunnerCallbacks | None = None) -> None:
    """
    Run a task tree and return once it has settled.

    Raises:
        TransformError: a leaf failed
        CompositionError: one or more children of a composition failed
    """
    cb = callbacks or RunnerCallbacks()

    if task.kind is NodeKind.LEAF:
        await _run_leaf(task, cb)
    elif task.kind is NodeKind.SEQUENTIAL:
        await _run_sequential(task, cb)
    elif task.kind is NodeKind.CONCURRENT:
        await _run_concurrent(task, cb)
    else:
        raise TypeError(f"Not a task: {task!r}")


async def _run_leaf(leaf: Leaf, cb: RunnerCallbacks) -> None:
    logger.debug(f"Starting '{leaf.name}'")
    if cb.on_task_start:
        cb.on_task_start(leaf.name)

    start = time.monotonic()
    try:
        await leaf.body()
    except TransformError:
        _complete(leaf, cb, False, start)
        raise
    except Exception as e:
        _complete(leaf, cb, False, start)
        raise TransformError(leaf.name, e) from e

    _complete(leaf, cb, True, start)


def _complete(leaf: Leaf, cb: RunnerCallbacks, success: bool, start: float) -> None:
    elapsed = time.monotonic() - start
    if success:
        logger.debug(f"Finished '{leaf.name}' after {elapsed:.2f}s")
    else:
        logger.debug(f"'{leaf.name}' failed after {elapsed:.2f}s")
    if cb.on_task_complete:
        cb.on_task_complete(leaf.name, success, elapsed)


async def _run_sequential(node: Sequential, cb: RunnerCallbacks) -> None:
    for index, child in enumerate(node.children):
        try:
            await invoke(child, cb)
        except AssetPipeError as e:
            raise CompositionError(node.name, [ChildFailure(index, child.name, e)]) from e


async def _run_concurrent(node: Concurrent, cb: RunnerCallbacks) -> None:
    outcomes = await asyncio.gather(
        *(invoke(child, cb) for child in node.children),
        return_exceptions=True,
    )

    failures = []
    for index, (child, outcome) in enumerate(zip(node.children, outcomes)):
        if isinstance(outcome, AssetPipeError):
            failures.append(ChildFailure(index, child.name, outcome))
        elif isinstance(outcome, BaseException):
            # Only cancellation gets here; every other error was wrapped by the leaf
            raise outcome

    if failures:
        raise CompositionError(node.name, failures)


class AsyncRunner:
    """
    Top-level runner for one-shot invocations.

    Converts the propagated error into a RunResult so the caller decides
    what a failure means (exit code in the CLI, log line in watch mode).
    """

    def __init__(self, callbacks: RunnerCallbacks | None = None):
        self.callbacks = callbacks or RunnerCallbacks()

    async def run(self, task: Task) -> RunResult:
        """
        Execute a task tree.

        Args:
            task: Root of the tree to execute

        Returns:
            RunResult with execution summary
        """
        result = RunResult(success=True, task_name=task.name)
        user_complete = self.callbacks.on_task_complete

        def on_task_complete(name: str, success: bool, seconds: float) -> None:
            if success:
                result.tasks_completed += 1
            else:
                result.tasks_failed += 1
            if user_complete:
                user_complete(name, success, seconds)

        cb = RunnerCallbacks(
            on_task_start=self.callbacks.on_task_start,
            on_task_complete=on_task_complete,
            on_binding_state=self.callbacks.on_binding_state,
            on_watch_error=self.callbacks.on_watch_error,
        )

        start = time.monotonic()
        try:
            await invoke(task, cb)
        except CompositionError as e:
            result.success = False
            result.errors.extend(str(err) for err in e.leaf_errors())
            logger.error(str(e))
        except TransformError as e:
            result.success = False
            result.errors.append(str(e))
            logger.error(str(e))
        result.duration_seconds = time.monotonic() - start

        if self.callbacks.on_run_complete:
            self.callbacks.on_run_complete(result)

        return result
