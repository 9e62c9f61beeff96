"""
Centralized constants for assetpipe.

Source/output layout, file extension sets and the purge safelist live here
so transforms, watch bindings and config share one definition.
"""

# Source subdirectories (relative to the source root)
STYLES_DIR = "scss"
SCRIPTS_DIR = "scripts"
IMAGES_DIR = "img"
FONTS_DIR = "fonts"

# Output subdirectories (relative to the output root)
CSS_OUT_DIR = "css"
SCRIPTS_OUT_DIR = "scripts"
IMAGES_OUT_DIR = "img"
FONTS_OUT_DIR = "fonts"

# Image sources (case-insensitive matching via both cases)
IMAGE_EXTENSIONS = {
    ".jpg",
    ".JPG",
    ".jpeg",
    ".JPEG",
    ".png",
    ".PNG",
    ".gif",
    ".GIF",
    ".svg",
    ".SVG",
    ".webp",
    ".WEBP",
}

# Suffix inserted before the extension of minified artifacts
MIN_SUFFIX = ".min"

# Entry script that is only emitted minified, never copied verbatim
ENTRY_SCRIPT = "script.js"

# Files scanned for selector usage when purging CSS
PURGE_CONTENT_GLOBS = ["**/*.html", "scripts/**/*.js", "**/*.php"]

# Selectors that are never purged (literal names or regex patterns)
PURGE_SAFELIST = [
    "body",
    "html",
    "root",
    "no-js",
    "loading",
    "active",
    "open",
    "visible",
    "hidden",
]

PURGE_SAFELIST_PATTERNS = [
    r"^btn-",
    r"^card-",
    r"^modal-",
    r"^flex-",
    r"^grid-",
    r"^text-",
    r"^animate-",
    r"^transition-",
    r"^js-",
    r"^is-",
    r"^has-",
]

# Environment variable selecting production mode
ENV_MODE_VAR = "ASSETPIPE_ENV"
PRODUCTION = "production"
