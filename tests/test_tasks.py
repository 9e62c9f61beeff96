"""Tests for task definitions and the registry."""

import pytest

from assetpipe.errors import ConstructionError
from assetpipe.workflow.tasks import (
    Concurrent,
    Leaf,
    NodeKind,
    Sequential,
    TaskRegistry,
    concurrent,
    sequential,
    walk,
)


async def noop():
    pass


def leaf(name):
    return Leaf(name=name, body=noop)


class TestTaskKinds:
    """Tests for the three node kinds."""

    def test_leaf_kind(self):
        """Test a leaf reports its kind."""
        assert leaf("a").kind is NodeKind.LEAF

    def test_sequential_kind(self):
        """Test sequential() builds a Sequential node."""
        node = sequential(leaf("a"), leaf("b"))
        assert isinstance(node, Sequential)
        assert node.kind is NodeKind.SEQUENTIAL

    def test_concurrent_kind(self):
        """Test concurrent() builds a Concurrent node."""
        node = concurrent(leaf("a"), leaf("b"))
        assert isinstance(node, Concurrent)
        assert node.kind is NodeKind.CONCURRENT

    def test_default_names(self):
        """Test compositions are named after their children by default."""
        assert sequential(leaf("a"), leaf("b")).name == "sequential(a, b)"
        assert concurrent(leaf("a"), leaf("b")).name == "concurrent(a, b)"

    def test_explicit_name(self):
        """Test an explicit name wins."""
        assert sequential(leaf("a"), name="build").name == "build"

    def test_children_keep_declared_order(self):
        """Test children are stored in declaration order."""
        a, b, c = leaf("a"), leaf("b"), leaf("c")
        assert sequential(a, b, c).children == (a, b, c)

    def test_task_can_appear_twice(self):
        """Test the same task may be reused in a composition."""
        a = leaf("a")
        node = sequential(a, concurrent(a, leaf("b")))
        assert node.children[0] is node.children[1].children[0]


class TestConstructionErrors:
    """Tests for invalid compositions."""

    def test_empty_sequential(self):
        """Test sequential() with no tasks is rejected."""
        with pytest.raises(ConstructionError, match="at least one"):
            sequential()

    def test_empty_concurrent(self):
        """Test concurrent() with no tasks is rejected."""
        with pytest.raises(ConstructionError, match="at least one"):
            concurrent()

    def test_non_task_child(self):
        """Test a plain callable is not accepted as a child."""
        with pytest.raises(ConstructionError, match="non-task"):
            sequential(leaf("a"), noop)


class TestWalk:
    """Tests for tree traversal."""

    def test_walk_depths(self):
        """Test walk yields every node with its depth in declaration order."""
        tree = sequential(leaf("a"), concurrent(leaf("b"), leaf("c"), name="p"), name="root")
        assert [(d, t.name) for d, t in walk(tree)] == [
            (0, "root"),
            (1, "a"),
            (1, "p"),
            (2, "b"),
            (2, "c"),
        ]


class TestTaskRegistry:
    """Tests for TaskRegistry."""

    def test_task_registers_leaf(self):
        """Test task() creates and registers a leaf."""
        registry = TaskRegistry()
        created = registry.task("styles", noop, ["dist/css/*.css"], "Compile")

        assert isinstance(created, Leaf)
        assert registry.get("styles") is created
        assert created.outputs == ("dist/css/*.css",)
        assert created.description == "Compile"

    def test_add_composition(self):
        """Test a composition can be exposed under a name."""
        registry = TaskRegistry()
        build = sequential(leaf("a"), name="build")
        assert registry.add("build", build) is build
        assert "build" in registry

    def test_duplicate_name(self):
        """Test registering a name twice fails."""
        registry = TaskRegistry()
        registry.task("clean", noop)
        with pytest.raises(ConstructionError, match="already registered"):
            registry.task("clean", noop)

    def test_empty_name(self):
        """Test an empty name is rejected."""
        with pytest.raises(ConstructionError):
            TaskRegistry().task("", noop)

    def test_register_after_freeze(self):
        """Test the registry is closed once frozen."""
        registry = TaskRegistry()
        registry.task("clean", noop)
        registry.freeze()

        assert registry.frozen is True
        with pytest.raises(ConstructionError, match="frozen"):
            registry.task("late", noop)

    def test_unknown_name(self):
        """Test get() names the known tasks when a name is missing."""
        registry = TaskRegistry()
        registry.task("clean", noop)
        with pytest.raises(KeyError, match="clean"):
            registry.get("nope")

    def test_names_in_registration_order(self):
        """Test names() keeps registration order."""
        registry = TaskRegistry()
        for name in ("b", "a", "c"):
            registry.task(name, noop)
        assert registry.names() == ["b", "a", "c"]
        assert len(registry) == 3
