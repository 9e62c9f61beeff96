"""
Workflow layer - Task trees and pipeline definitions.

Task trees are DATA STRUCTURES that define what to run and in which order.
They do NOT execute anything - that's the runner's job. The build and
default pipelines are created by workflow.pipelines.create_pipeline.
"""

from .tasks import Concurrent, Leaf, NodeKind, Sequential, Task, TaskRegistry, concurrent, sequential, walk

__all__ = [
    "Task",
    "Leaf",
    "Sequential",
    "Concurrent",
    "NodeKind",
    "TaskRegistry",
    "sequential",
    "concurrent",
    "walk",
]
