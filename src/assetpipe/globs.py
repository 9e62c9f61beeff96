"""
Glob helpers - path matching shared by the transforms and the watcher.

Patterns are POSIX-style and relative to a root: `scss/**/*.scss`,
`img/**/*.{jpg,png}`. `**/` matches zero or more directories and a
`{a,b}` group expands into alternatives.
"""

import re
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand `{a,b}` groups into a list of plain patterns."""
    match = _BRACES.search(pattern)
    if not match:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def _match_one(path: str, pattern: str) -> bool:
    if fnmatchcase(path, pattern):
        return True
    # "**/" may also match zero directories
    if "**/" in pattern:
        return _match_one(path, pattern.replace("**/", "", 1))
    return False


def matches(path: str | PurePosixPath, pattern: str) -> bool:
    """Check a root-relative POSIX path against a glob pattern."""
    text = str(PurePosixPath(path))
    return any(_match_one(text, p) for p in expand_braces(pattern))


def matches_any(path: str | PurePosixPath, patterns: list[str]) -> bool:
    return any(matches(path, p) for p in patterns)


def collect(root: Path, pattern: str, exclude: list[str] | None = None) -> list[Path]:
    """
    Find files under root matching pattern, sorted for deterministic output.

    A missing root is not an error - it simply has no matching files.
    """
    if not root.is_dir():
        return []

    exclude = exclude or []
    found = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        rel = path.relative_to(root).as_posix()
        if matches(rel, pattern) and not matches_any(rel, exclude):
            found.append(path)
    return sorted(found)


def with_suffix_marker(rel: Path, marker: str, extension: str | None = None) -> Path:
    """
    Insert a marker before the extension without doubling it.

    Examples:
        main.js      -> main.min.js
        vendor.min.js -> vendor.min.js
        site.scss    -> site.min.css (with extension=".css")
    """
    ext = extension if extension else rel.suffix
    stem = rel.stem
    if stem.endswith(marker):
        stem = stem[: -len(marker)]
    return rel.with_name(f"{stem}{marker}{ext}")
