"""Clean action - Remove the output tree."""

import logging
import shutil
from pathlib import Path

from ..config import BuildConfig
from ..errors import TransformError
from .copy import TransformResult

logger = logging.getLogger(__name__)


def clean(config: BuildConfig) -> TransformResult:
    """
    Delete the output root.

    Refuses to delete the working directory, an ancestor of it, or a
    directory containing the source root.
    """
    output = config.output.resolve()
    source = config.source.resolve()
    cwd = Path.cwd().resolve()

    if output == cwd or output in cwd.parents:
        raise TransformError("clean", "refusing to delete the working directory or its parent", path=output)
    if output == source or output in source.parents:
        raise TransformError("clean", "refusing to delete a directory containing the sources", path=output)

    result = TransformResult(task="clean")
    if not output.exists():
        return result

    try:
        shutil.rmtree(output)
    except OSError as e:
        raise TransformError("clean", e, path=output) from e

    logger.debug(f"Removed {output}")
    result.outputs.append(output)
    return result
