"""Style actions - SCSS compilation through the sass executable."""

import logging
from pathlib import Path

from ..config import BuildConfig
from ..constants import CSS_OUT_DIR, MIN_SUFFIX, STYLES_DIR
from ..globs import collect, with_suffix_marker
from ..tools import run_tool
from .copy import TransformResult

logger = logging.getLogger(__name__)


def is_partial(path: Path) -> bool:
    """Partials (_name.scss) are only compiled through @use/@import."""
    return path.name.startswith("_")


def build_sass_args(source: Path, output: Path, load_path: Path, compressed: bool, source_map: bool) -> list[str]:
    """Build sass arguments for one input/output pair."""
    args = [
        str(source),
        str(output),
        f"--style={'compressed' if compressed else 'expanded'}",
        f"--load-path={load_path}",
        "--no-error-css",
    ]
    args.append("--source-map" if source_map else "--no-source-map")
    return args


def compile_styles(config: BuildConfig) -> TransformResult:
    """
    Compile every non-partial stylesheet into name.css and name.min.css.

    Source maps are written next to the outputs in development mode only.

    Vendor prefixes are not added: sass output is written as compiled, so
    prefixed properties belong in the SCSS sources.

    Returns:
        TransformResult listing the CSS files (and maps) written

    Raises:
        TransformError: sass is missing or a stylesheet does not compile
    """
    root = config.source / STYLES_DIR
    out_dir = config.output / CSS_OUT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    result = TransformResult(task="styles")
    source_map = not config.production

    for source in collect(root, "**/*.scss"):
        if is_partial(source):
            result.skipped += 1
            continue

        rel = source.relative_to(root)
        css = out_dir / rel.with_suffix(".css")
        minified = out_dir / with_suffix_marker(rel, MIN_SUFFIX, ".css")
        css.parent.mkdir(parents=True, exist_ok=True)

        for output, compressed in ((css, False), (minified, True)):
            run_tool("styles", config.tools.sass, build_sass_args(source, output, root, compressed, source_map), source)
            result.outputs.append(output)
            if source_map:
                result.outputs.append(output.with_name(output.name + ".map"))

        logger.debug(f"Compiled {rel}")

    return result
