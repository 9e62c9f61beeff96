"""
Error taxonomy for the build engine.

TransformError      - a single Transform Unit failed on a specific input
CompositionError    - one (sequential) or more (concurrent) children failed
ConstructionError   - invalid task graph detected at startup
ConfigError         - invalid configuration value
"""

from dataclasses import dataclass
from pathlib import Path


class AssetPipeError(Exception):
    """Base class for all assetpipe errors."""


class ConstructionError(AssetPipeError):
    """Duplicate task name, empty composition or registration after freeze."""


class ConfigError(AssetPipeError):
    """Configuration value the pipeline cannot work with."""


class TransformError(AssetPipeError):
    """A named task failed, optionally on a specific input path."""

    def __init__(self, task: str, cause: BaseException | str, path: Path | None = None):
        self.task = task
        self.cause = cause
        self.path = path
        super().__init__(str(self))

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path is not None else ""
        return f"[{self.task}]{where} {self.cause}"


@dataclass
class ChildFailure:
    """A failed child of a composition, with its position in the child list."""

    index: int
    name: str
    error: AssetPipeError


class CompositionError(AssetPipeError):
    """
    Failure of a composition node.

    Sequential nodes carry exactly one failure (the child that stopped the
    chain); concurrent nodes carry every failure among their children.
    """

    def __init__(self, node: str, failures: list[ChildFailure]):
        self.node = node
        self.failures = failures
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [f"#{f.index} {f.name}: {f.error}" for f in self.failures]
        return f"{self.node} failed: " + "; ".join(parts)

    @property
    def failed_names(self) -> list[str]:
        return [f.name for f in self.failures]

    def leaf_errors(self) -> list[TransformError]:
        """Flatten nested compositions down to the TransformErrors that caused them."""
        errors: list[TransformError] = []
        for failure in self.failures:
            if isinstance(failure.error, CompositionError):
                errors.extend(failure.error.leaf_errors())
            elif isinstance(failure.error, TransformError):
                errors.append(failure.error)
        return errors
