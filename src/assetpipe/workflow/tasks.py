"""Task definitions - the closed variant Leaf | Sequential | Concurrent and the registry."""

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from ..errors import ConstructionError

TaskBody = Callable[[], Awaitable[None]]


class NodeKind(Enum):
    """Kinds of node in a task tree."""

    LEAF = "leaf"
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass(frozen=True, eq=False)
class Leaf:
    """
    A named unit of work.

    Tasks are data - the body is awaited by the executor, never by the task
    itself. Declared outputs are for introspection only.
    """

    name: str
    body: TaskBody
    outputs: tuple[str, ...] = ()
    description: str = ""

    @property
    def kind(self) -> NodeKind:
        return NodeKind.LEAF


@dataclass(frozen=True, eq=False)
class Sequential:
    """Children run strictly in declared order; the first failure stops the chain."""

    name: str
    children: tuple["Task", ...] = field(default_factory=tuple)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.SEQUENTIAL


@dataclass(frozen=True, eq=False)
class Concurrent:
    """Children start together; the node settles once every child has settled."""

    name: str
    children: tuple["Task", ...] = field(default_factory=tuple)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.CONCURRENT


Task = Leaf | Sequential | Concurrent


def _children(tasks: tuple, kind: str) -> tuple:
    if not tasks:
        raise ConstructionError(f"{kind}() needs at least one task")
    for task in tasks:
        if not isinstance(task, (Leaf, Sequential, Concurrent)):
            raise ConstructionError(f"{kind}() got a non-task child: {task!r}")
    return tuple(tasks)


def sequential(*tasks: Task, name: str | None = None) -> Sequential:
    """Compose tasks to run one after another."""
    children = _children(tasks, "sequential")
    return Sequential(name=name or f"sequential({', '.join(t.name for t in children)})", children=children)


def concurrent(*tasks: Task, name: str | None = None) -> Concurrent:
    """Compose tasks to run at the same time."""
    children = _children(tasks, "concurrent")
    return Concurrent(name=name or f"concurrent({', '.join(t.name for t in children)})", children=children)


def walk(task: Task, depth: int = 0) -> Iterator[tuple[int, Task]]:
    """Yield (depth, node) for a task tree in declaration order."""
    yield depth, task
    if task.kind is not NodeKind.LEAF:
        for child in task.children:
            yield from walk(child, depth + 1)


class TaskRegistry:
    """
    Name -> Task mapping for individually invocable tasks.

    Populated once at startup, then frozen. Re-registering a name or
    registering after freeze() is a construction-time error.
    """

    def __init__(self):
        self._tasks: dict[str, Task] = {}
        self._frozen = False

    def task(
        self,
        name: str,
        body: TaskBody,
        outputs: tuple[str, ...] | list[str] = (),
        description: str = "",
    ) -> Leaf:
        """Create a leaf task, register it and return it."""
        leaf = Leaf(name=name, body=body, outputs=tuple(outputs), description=description)
        self.add(name, leaf)
        return leaf

    def add(self, name: str, task: Task) -> Task:
        """Expose an already-built task (usually a composition) under a name."""
        if self._frozen:
            raise ConstructionError(f"Registry is frozen, cannot register {name!r}")
        if not name:
            raise ConstructionError("Task name must not be empty")
        if name in self._tasks:
            raise ConstructionError(f"Task {name!r} is already registered")
        self._tasks[name] = task
        return task

    def freeze(self) -> None:
        """End the populate phase."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Task:
        """Get a task by name."""
        try:
            return self._tasks[name]
        except KeyError:
            raise KeyError(f"Unknown task {name!r}. Known tasks: {', '.join(sorted(self._tasks))}") from None

    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)
