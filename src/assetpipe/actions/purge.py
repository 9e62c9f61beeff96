"""
Purge actions - Remove CSS rules whose selectors never occur in the content.

Content files (markup, scripts, templates) are reduced to a set of words;
a selector survives when every class and id it names is in that set or in
the safelist. Selectors without classes or ids (`body`, `*`, `:root`) are
always kept. At-rules are handled as follows:

- @media, @supports, @layer, @container: pruned recursively, dropped when empty
- @font-face, @keyframes: kept unless disabled in config
- everything else (@import, @charset, @page, ...): kept verbatim
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from ..config import BuildConfig
from ..constants import CSS_OUT_DIR
from ..errors import TransformError
from ..globs import collect
from .copy import TransformResult

logger = logging.getLogger(__name__)

CONDITIONAL_AT_RULES = {"media", "supports", "layer", "container", "document", "-moz-document"}

_WORD_RE = re.compile(r"[A-Za-z0-9_-]+")
_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_CLASS_OR_ID_RE = re.compile(r"([.#])((?:\\.|[A-Za-z0-9_-])+)")
_PARENS_RE = re.compile(r"\([^()]*\)")
_ATTR_RE = re.compile(r"\[[^\]]*\]")


@dataclass
class Safelist:
    """Names (without . or #) and regexes that are never purged."""

    names: set[str] = field(default_factory=set)
    patterns: list[re.Pattern] = field(default_factory=list)

    @classmethod
    def from_config(cls, names: list[str], patterns: list[str]) -> "Safelist":
        return cls(
            names={n.lstrip(".#") for n in names},
            patterns=[re.compile(p) for p in patterns],
        )

    def __contains__(self, name: str) -> bool:
        return name in self.names or any(p.search(name) for p in self.patterns)


def extract_words(text: str) -> set[str]:
    """Split content into candidate class/id names."""
    return set(_WORD_RE.findall(text))


def selector_names(selector: str) -> list[str]:
    """Class and id names a selector requires (functional pseudo-class arguments ignored)."""
    stripped = _ATTR_RE.sub("", selector)
    while True:
        reduced = _PARENS_RE.sub("", stripped)
        if reduced == stripped:
            break
        stripped = reduced
    return [name.replace("\\", "") for _, name in _CLASS_OR_ID_RE.findall(stripped)]


def _skip_string(css: str, i: int) -> int:
    quote = css[i]
    i += 1
    while i < len(css):
        if css[i] == "\\":
            i += 2
            continue
        if css[i] == quote:
            return i + 1
        i += 1
    return i


def _matching_brace(css: str, open_index: int) -> int:
    depth = 0
    i = open_index
    while i < len(css):
        if css.startswith("/*", i):
            end = css.find("*/", i + 2)
            i = len(css) if end == -1 else end + 2
            continue
        c = css[i]
        if c in "\"'":
            i = _skip_string(css, i)
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise ValueError(f"unbalanced '{{' at offset {open_index}")


def split_blocks(css: str) -> list[tuple[str, str | None]]:
    """
    Split a stylesheet into (prelude, body) pairs at nesting depth 0.

    Statements such as @import and any trailing text have a body of None.
    Joining the pieces back reproduces the input.
    """
    items: list[tuple[str, str | None]] = []
    i = start = 0
    while i < len(css):
        if css.startswith("/*", i):
            end = css.find("*/", i + 2)
            i = len(css) if end == -1 else end + 2
            continue
        c = css[i]
        if c in "\"'":
            i = _skip_string(css, i)
            continue
        if c == ";":
            items.append((css[start : i + 1], None))
            i += 1
            start = i
            continue
        if c == "{":
            close = _matching_brace(css, i)
            items.append((css[start:i], css[i + 1 : close]))
            i = close + 1
            start = i
            continue
        i += 1
    if start < len(css):
        items.append((css[start:], None))
    return items


def _split_selectors(prelude: str) -> list[str]:
    selectors = []
    depth = 0
    current = []
    for c in prelude:
        if c in "([":
            depth += 1
        elif c in ")]":
            depth -= 1
        if c == "," and depth == 0:
            selectors.append("".join(current).strip())
            current = []
        else:
            current.append(c)
    selectors.append("".join(current).strip())
    return [s for s in selectors if s]


def prune_css(
    css: str,
    used: set[str],
    safelist: Safelist,
    keep_font_face: bool = True,
    keep_keyframes: bool = True,
) -> str:
    """Return css without the rules none of whose selectors are used."""

    def is_used(selector: str) -> bool:
        return all(name in used or name in safelist for name in selector_names(selector))

    out = []
    for prelude, body in split_blocks(css):
        if body is None:
            out.append(prelude)
            continue

        head = _COMMENT_RE.sub("", prelude).strip()
        lead = prelude[: len(prelude) - len(prelude.lstrip())]

        if head.startswith("@"):
            at_name = head[1:].split(None, 1)[0].split("(", 1)[0].lower() if len(head) > 1 else ""
            if at_name in CONDITIONAL_AT_RULES:
                inner = prune_css(body, used, safelist, keep_font_face, keep_keyframes)
                if inner.strip():
                    out.append(f"{prelude}{{{inner}}}")
            elif at_name == "font-face":
                if keep_font_face:
                    out.append(f"{prelude}{{{body}}}")
            elif at_name.endswith("keyframes"):
                if keep_keyframes:
                    out.append(f"{prelude}{{{body}}}")
            else:
                out.append(f"{prelude}{{{body}}}")
            continue

        selectors = _split_selectors(head)
        kept = [s for s in selectors if is_used(s)]
        if not kept:
            continue
        if len(kept) == len(selectors):
            out.append(f"{prelude}{{{body}}}")
        else:
            out.append(f"{lead}{','.join(kept)}{{{body}}}")

    return "".join(out)


def collect_content_words(source_root: Path, globs: list[str]) -> set[str]:
    """Read every content file and return the words found in them."""
    words: set[str] = set()
    for pattern in globs:
        for path in collect(source_root, pattern):
            try:
                words |= extract_words(path.read_text(encoding="utf-8", errors="replace"))
            except OSError as e:
                raise TransformError("purge", e, path=path) from e
    return words


def purge_styles(config: BuildConfig) -> TransformResult:
    """
    Prune unused selectors from every built stylesheet (production only).

    In development mode the stylesheets are left untouched.
    """
    out_dir = config.output / CSS_OUT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    result = TransformResult(task="purge")
    stylesheets = collect(out_dir, "**/*.css")

    if not config.production:
        result.skipped = len(stylesheets)
        logger.debug("Pruning disabled outside production, stylesheets passed through")
        return result

    used = collect_content_words(config.source, config.purge.content)
    safelist = Safelist.from_config(config.purge.safelist, config.purge.safelist_patterns)

    for sheet in stylesheets:
        try:
            css = sheet.read_text(encoding="utf-8")
            pruned = prune_css(css, used, safelist, config.purge.keep_font_face, config.purge.keep_keyframes)
        except (OSError, ValueError) as e:
            raise TransformError("purge", e, path=sheet) from e

        sheet.write_text(pruned, encoding="utf-8")
        result.outputs.append(sheet)
        logger.debug(f"Purged {sheet.name}: {len(css)} -> {len(pruned)} bytes")

    return result
