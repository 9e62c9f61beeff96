"""
Watch runner - Re-runs bound tasks when files under the source root change.

Uses polling (portable across platforms): every interval the source tree is
snapshotted as {relative path: (mtime_ns, size)} and compared with the
previous snapshot. Added, modified and removed files are change events.

Each binding follows IDLE -> TRIGGERED -> RUNNING -> IDLE. A failed run
is reported and the binding goes back to IDLE, still armed.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import AssetPipeError
from ..globs import matches
from ..workflow.tasks import Task
from .base import RunnerCallbacks
from .executor import invoke

logger = logging.getLogger(__name__)

Snapshot = dict[str, tuple[int, int]]


class BindingState(Enum):
    """State of a watch binding."""

    IDLE = "idle"
    TRIGGERED = "triggered"
    RUNNING = "running"


class OverlapPolicy(Enum):
    """What a trigger does while the binding's task is still running."""

    QUEUE = "queue"  # remember one follow-up run
    DROP = "drop"  # ignore the trigger
    PARALLEL = "parallel"  # start a duplicate run right away


@dataclass(eq=False)
class WatchBinding:
    """A glob pattern (relative to the watched root) bound to a task."""

    pattern: str
    task: Task
    state: BindingState = BindingState.IDLE
    runs: int = 0
    failures: int = 0
    in_flight: int = 0
    pending: bool = False

    def matches(self, rel_path: str) -> bool:
        return matches(rel_path, self.pattern)


class Watcher:
    """
    Poll a directory and trigger bound tasks on matching changes.

    Example:
        >>> watcher = Watcher(Path("src"))
        >>> watcher.bind("scss/**/*.scss", sequential(styles, reload))
        >>> await watcher.run()  # until watcher.stop()
    """

    def __init__(
        self,
        root: Path,
        interval: float = 0.5,
        policy: OverlapPolicy = OverlapPolicy.QUEUE,
        callbacks: RunnerCallbacks | None = None,
    ):
        """
        Initialize the watcher.

        Args:
            root: Directory to watch; binding patterns are relative to it
            interval: Seconds between polls
            policy: Handling of triggers that arrive while a run is in flight
            callbacks: Progress callbacks passed to every run
        """
        self.root = root
        self.interval = interval
        self.policy = policy
        self.callbacks = callbacks or RunnerCallbacks()
        self.bindings: list[WatchBinding] = []

        self._stop = asyncio.Event()
        self._running: set[asyncio.Task] = set()

    def bind(self, pattern: str, task: Task) -> WatchBinding:
        """Add a binding. Bindings are independent of each other."""
        binding = WatchBinding(pattern=pattern, task=task)
        self.bindings.append(binding)
        return binding

    def snapshot(self) -> Snapshot:
        """Record mtime and size of every file under the root."""
        state: Snapshot = {}
        if not self.root.is_dir():
            return state
        for path in self.root.rglob("*"):
            try:
                if not path.is_file():
                    continue
                st = path.stat()
            except FileNotFoundError:
                # Deleted between listing and stat
                continue
            state[path.relative_to(self.root).as_posix()] = (st.st_mtime_ns, st.st_size)
        return state

    @staticmethod
    def diff(previous: Snapshot, current: Snapshot) -> set[str]:
        """Paths added, removed or modified between two snapshots."""
        changed = {p for p, sig in current.items() if previous.get(p) != sig}
        changed |= previous.keys() - current.keys()
        return changed

    def dispatch(self, paths: Iterable[str]) -> list[asyncio.Task]:
        """
        Trigger every binding matching at least one of the changed paths.

        Each binding is triggered at most once per call. Must be called from
        inside the running event loop.

        Returns:
            The scheduled trigger tasks
        """
        paths = list(paths)
        scheduled = []
        for binding in self.bindings:
            hits = [p for p in paths if binding.matches(p)]
            if not hits:
                continue
            logger.info(f"Changed: {', '.join(sorted(hits))} -> {binding.task.name}")
            task = asyncio.create_task(self.trigger(binding))
            self._running.add(task)
            task.add_done_callback(self._running.discard)
            scheduled.append(task)
        return scheduled

    async def trigger(self, binding: WatchBinding) -> None:
        """Run a binding's task according to the overlap policy."""
        if binding.in_flight and self.policy is not OverlapPolicy.PARALLEL:
            if self.policy is OverlapPolicy.QUEUE:
                binding.pending = True
                logger.debug(f"'{binding.pattern}' busy, queued one more run")
            else:
                logger.debug(f"'{binding.pattern}' busy, dropped trigger")
            return

        self._set_state(binding, BindingState.TRIGGERED)
        while True:
            binding.in_flight += 1
            self._set_state(binding, BindingState.RUNNING)
            try:
                await invoke(binding.task, self.callbacks)
            except AssetPipeError as e:
                binding.failures += 1
                logger.error(f"Rebuild failed for '{binding.pattern}': {e}")
                if self.callbacks.on_watch_error:
                    self.callbacks.on_watch_error(binding.pattern, e)
            finally:
                binding.in_flight -= 1
                binding.runs += 1

            if binding.in_flight == 0:
                self._set_state(binding, BindingState.IDLE)

            if not binding.pending:
                break
            binding.pending = False
            self._set_state(binding, BindingState.TRIGGERED)

    def _set_state(self, binding: WatchBinding, state: BindingState) -> None:
        binding.state = state
        if self.callbacks.on_binding_state:
            self.callbacks.on_binding_state(binding.pattern, state.value)

    async def wait_idle(self) -> None:
        """Wait for every in-flight trigger to settle."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def run(self) -> None:
        """Poll until stop() is called."""
        self._stop.clear()
        previous = await asyncio.to_thread(self.snapshot)
        logger.info(f"Watching {self.root} ({len(self.bindings)} bindings, {self.policy.value} on overlap)")

        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass

            current = await asyncio.to_thread(self.snapshot)
            changed = self.diff(previous, current)
            previous = current
            if changed:
                self.dispatch(changed)

        await self.wait_idle()
        logger.info("Watcher stopped")

    def stop(self) -> None:
        """Stop polling after the current interval."""
        self._stop.set()
