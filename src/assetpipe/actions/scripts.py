"""Script actions - Minification through terser and verbatim copies."""

import logging

from ..config import BuildConfig
from ..constants import ENTRY_SCRIPT, MIN_SUFFIX, SCRIPTS_DIR, SCRIPTS_OUT_DIR
from ..globs import collect, with_suffix_marker
from ..tools import run_tool
from .copy import TransformResult, copy_files

logger = logging.getLogger(__name__)

# script.js only ships minified; *.min.js is written by minify_scripts
COPY_EXCLUDES = [f"**/{ENTRY_SCRIPT}", f"**/*{MIN_SUFFIX}.js"]


def minify_scripts(config: BuildConfig) -> TransformResult:
    """
    Minify every script into name.min.js.

    Raises:
        TransformError: terser is missing or a script does not parse
    """
    root = config.source / SCRIPTS_DIR
    out_dir = config.output / SCRIPTS_OUT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    result = TransformResult(task="scripts")
    for source in collect(root, "**/*.js"):
        rel = source.relative_to(root)
        output = out_dir / with_suffix_marker(rel, MIN_SUFFIX)
        output.parent.mkdir(parents=True, exist_ok=True)

        run_tool(
            "scripts",
            config.tools.terser,
            [str(source), "--compress", "--mangle", "--output", str(output)],
            source,
        )
        result.outputs.append(output)

    logger.debug(f"Minified {result.files_written} script(s)")
    return result


def copy_scripts(config: BuildConfig) -> TransformResult:
    """Copy non-entry script files (vendor libraries, data files) verbatim."""
    root = config.source / SCRIPTS_DIR
    files = collect(root, "**/*", exclude=COPY_EXCLUDES)
    return copy_files("copy-scripts", files, root, config.output / SCRIPTS_OUT_DIR)
