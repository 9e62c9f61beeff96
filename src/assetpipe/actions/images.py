"""Image actions - Re-encoding with Pillow for production builds."""

import logging
import re
import shutil
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..config import BuildConfig, ImagesConfig
from ..constants import IMAGES_DIR, IMAGES_OUT_DIR
from ..errors import TransformError
from ..globs import collect
from .copy import IMAGES_GLOB, TransformResult

logger = logging.getLogger(__name__)

_SVG_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_SVG_GAP_RE = re.compile(r">\s+<")


def minify_svg(text: str) -> str:
    """Strip comments and inter-tag whitespace; viewBox and attributes are untouched."""
    text = _SVG_COMMENT_RE.sub("", text)
    text = _SVG_GAP_RE.sub("><", text)
    return text.strip()


def optimize_image(source: Path, output: Path, settings: ImagesConfig) -> None:
    """
    Write an optimized copy of one image.

    JPEG: quality + progressive, PNG: optimize, WebP: quality,
    SVG: text minification, GIF: copied unchanged.
    """
    ext = source.suffix.lower()
    output.parent.mkdir(parents=True, exist_ok=True)

    if ext == ".svg":
        output.write_text(minify_svg(source.read_text(encoding="utf-8")), encoding="utf-8")
        return

    if ext == ".gif":
        shutil.copy2(source, output)
        return

    with Image.open(source) as im:
        if ext in (".jpg", ".jpeg"):
            if im.mode not in ("RGB", "L"):
                im = im.convert("RGB")
            im.save(
                output,
                format="JPEG",
                quality=settings.jpeg_quality,
                optimize=True,
                progressive=settings.progressive,
            )
        elif ext == ".png":
            im.save(output, format="PNG", optimize=True)
        elif ext == ".webp":
            im.save(output, format="WEBP", quality=settings.webp_quality)
        else:
            shutil.copy2(source, output)


def optimize_images(config: BuildConfig) -> TransformResult:
    """
    Optimize every image (production variant of copy_images).

    Raises:
        TransformError: an image cannot be decoded or written
    """
    root = config.source / IMAGES_DIR
    out_dir = config.output / IMAGES_OUT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    result = TransformResult(task="optimize-images")
    for source in collect(root, IMAGES_GLOB):
        output = out_dir / source.relative_to(root)
        try:
            optimize_image(source, output, config.images)
        except (OSError, UnidentifiedImageError, UnicodeDecodeError, ValueError) as e:
            raise TransformError("optimize-images", e, path=source) from e
        result.outputs.append(output)

    logger.debug(f"Optimized {result.files_written} image(s)")
    return result
