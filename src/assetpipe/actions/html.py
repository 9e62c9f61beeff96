"""HTML actions - Page assembly from <include> partials."""

import logging
import re
from pathlib import Path

from ..config import BuildConfig
from ..errors import TransformError
from ..globs import collect
from .copy import TransformResult

logger = logging.getLogger(__name__)

# <include src="header.html"></include> or <include src="header.html" />
INCLUDE_RE = re.compile(
    r"<include\s+[^>]*?src\s*=\s*([\"'])(?P<src>.+?)\1[^>]*?(?:/>|>(?P<body>.*?)</include\s*>)",
    re.DOTALL | re.IGNORECASE,
)


def _resolve(src: str, including_file: Path, source_root: Path) -> Path | None:
    """Look the include up next to the including file, then under the source root."""
    for base in (including_file.parent, source_root):
        candidate = base / src
        if candidate.is_file():
            return candidate
    return None


def resolve_includes(path: Path, source_root: Path, stack: tuple[Path, ...] = ()) -> str:
    """
    Return the content of path with every include replaced, recursively.

    Raises:
        TransformError: missing include or include cycle
    """
    resolved = path.resolve()
    if resolved in stack:
        chain = " -> ".join(p.name for p in (*stack, resolved))
        raise TransformError("html", f"include cycle: {chain}", path=path)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TransformError("html", e, path=path) from e

    def replace(match: re.Match) -> str:
        src = match.group("src")
        target = _resolve(src, path, source_root)
        if target is None:
            raise TransformError("html", f"include not found: {src}", path=path)
        return resolve_includes(target, source_root, (*stack, resolved))

    return INCLUDE_RE.sub(replace, text)


def assemble_html(config: BuildConfig) -> TransformResult:
    """Write every page under the source root to the output root with includes inlined."""
    root = config.source
    config.output.mkdir(parents=True, exist_ok=True)

    result = TransformResult(task="html")
    for page in collect(root, "**/*.html"):
        output = config.output / page.relative_to(root)
        html = resolve_includes(page, root)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(html, encoding="utf-8")
        except OSError as e:
            raise TransformError("html", e, path=page) from e
        result.outputs.append(output)

    logger.debug(f"Assembled {result.files_written} page(s)")
    return result
