"""Copy actions - Verbatim file copies from the source tree to the output tree."""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from ..config import BuildConfig
from ..constants import FONTS_DIR, FONTS_OUT_DIR, IMAGE_EXTENSIONS, IMAGES_DIR, IMAGES_OUT_DIR
from ..errors import TransformError
from ..globs import collect

logger = logging.getLogger(__name__)

IMAGES_GLOB = "**/*.{" + ",".join(sorted(ext.lstrip(".") for ext in IMAGE_EXTENSIONS)) + "}"


@dataclass
class TransformResult:
    """Result of a transform: the files it wrote under the output root."""

    task: str
    outputs: list[Path] = field(default_factory=list)
    skipped: int = 0

    @property
    def files_written(self) -> int:
        return len(self.outputs)


def copy_files(task: str, files: list[Path], source_root: Path, output_dir: Path) -> TransformResult:
    """
    Copy files to output_dir, keeping their path relative to source_root.

    Existing outputs are overwritten so a re-run picks up changed sources.

    Args:
        task: Task name used in errors
        files: Files to copy (all under source_root)
        source_root: Base the relative output paths are computed from
        output_dir: Destination directory

    Returns:
        TransformResult with the written paths
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    result = TransformResult(task=task)

    for file in files:
        dest = output_dir / file.relative_to(source_root)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file, dest)
        except (OSError, shutil.Error) as e:
            raise TransformError(task, e, path=file) from e
        result.outputs.append(dest)

    logger.debug(f"{task}: copied {len(result.outputs)} file(s) to {output_dir}")
    return result


def copy_fonts(config: BuildConfig) -> TransformResult:
    """Copy every font file verbatim."""
    root = config.source / FONTS_DIR
    return copy_files("fonts", collect(root, "**/*"), root, config.output / FONTS_OUT_DIR)


def copy_images(config: BuildConfig) -> TransformResult:
    """Copy images without re-encoding (development variant)."""
    root = config.source / IMAGES_DIR
    return copy_files("copy-images", collect(root, IMAGES_GLOB), root, config.output / IMAGES_OUT_DIR)
