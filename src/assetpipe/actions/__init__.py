"""
Actions layer - Pure Python transform units.

Every transform takes a BuildConfig, writes only under the output root and
returns a TransformResult, or raises TransformError naming the failing input.
They know nothing about ordering - the engine composes them.
"""

from .clean import clean
from .copy import TransformResult, copy_files, copy_fonts, copy_images
from .html import assemble_html, resolve_includes
from .images import optimize_images
from .purge import prune_css, purge_styles
from .scripts import copy_scripts, minify_scripts
from .styles import compile_styles

__all__ = [
    "TransformResult",
    "clean",
    "compile_styles",
    "purge_styles",
    "prune_css",
    "minify_scripts",
    "copy_scripts",
    "assemble_html",
    "resolve_includes",
    "copy_images",
    "optimize_images",
    "copy_fonts",
    "copy_files",
]
