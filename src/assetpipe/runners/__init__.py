"""
Runners layer - Execution engines for task trees.

Runners execute task trees, handling ordering, failure propagation and
progress reporting. The watcher re-runs sub-trees on file changes.
"""

from .base import RunnerCallbacks, RunnerProtocol, RunResult
from .executor import AsyncRunner, invoke
from .watch import BindingState, OverlapPolicy, Watcher, WatchBinding

__all__ = [
    "RunnerCallbacks",
    "RunnerProtocol",
    "RunResult",
    "AsyncRunner",
    "invoke",
    "BindingState",
    "OverlapPolicy",
    "Watcher",
    "WatchBinding",
]
