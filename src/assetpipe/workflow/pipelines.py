"""
Pipeline factory - Creates the build and development task trees.

build:
1. clean the output tree
2. compile stylesheets
3. purge unused selectors (production) or pass through
4. concurrently: minify scripts, assemble html, images, copy scripts, copy fonts

default:
1. build
2. concurrently: start the dev server, watch the sources
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .. import actions
from ..actions.copy import IMAGES_GLOB, TransformResult
from ..config import BuildConfig
from ..constants import (
    CSS_OUT_DIR,
    FONTS_DIR,
    FONTS_OUT_DIR,
    IMAGES_DIR,
    IMAGES_OUT_DIR,
    SCRIPTS_DIR,
    SCRIPTS_OUT_DIR,
    STYLES_DIR,
)
from ..runners.base import RunnerCallbacks
from ..runners.watch import OverlapPolicy, Watcher
from ..server import DevServer
from .tasks import Task, TaskBody, TaskRegistry, concurrent, sequential

logger = logging.getLogger(__name__)

# Watch patterns, relative to the source root
WATCH_STYLES = f"{STYLES_DIR}/**/*.scss"
WATCH_SCRIPTS = f"{SCRIPTS_DIR}/**/*.js"
WATCH_HTML = "**/*.html"
WATCH_IMAGES = f"{IMAGES_DIR}/{IMAGES_GLOB}"
WATCH_FONTS = f"{FONTS_DIR}/**/*"


def unit(transform: Callable[[BuildConfig], TransformResult], config: BuildConfig) -> TaskBody:
    """Adapt a synchronous transform into a task body run off the event loop."""

    async def body() -> None:
        result = await asyncio.to_thread(transform, config)
        logger.debug(f"{result.task}: {result.files_written} written, {result.skipped} skipped")

    return body


@dataclass
class Pipeline:
    """The resolved task tree plus the collaborators it drives."""

    config: BuildConfig
    registry: TaskRegistry
    server: DevServer
    watcher: Watcher
    build: Task
    default: Task


def create_pipeline(
    config: BuildConfig,
    server: DevServer | None = None,
    callbacks: RunnerCallbacks | None = None,
) -> Pipeline:
    """
    Create and freeze the registry of every invocable task.

    This is a FACTORY function: it builds the task tree once and runs
    nothing. The mode flag decides which image transform is wired in.

    Args:
        config: Build configuration
        server: Dev server driven by serve/reload (default: from config)
        callbacks: Callbacks for watch-triggered runs

    Returns:
        Pipeline with the frozen registry
    """
    out = config.output
    server = server or DevServer(
        out,
        host=config.server.host,
        port=config.server.port,
        open_browser=config.server.open_browser,
        cors=config.server.cors,
    )
    registry = TaskRegistry()

    # Transform tasks
    clean = registry.task("clean", unit(actions.clean, config), [str(out)], "Remove the output directory")
    styles = registry.task(
        "styles",
        unit(actions.compile_styles, config),
        [f"{out}/{CSS_OUT_DIR}/**/*.css"],
        "Compile SCSS to CSS and minified CSS",
    )
    purge = registry.task(
        "purge",
        unit(actions.purge_styles, config),
        [f"{out}/{CSS_OUT_DIR}/**/*.css"],
        "Remove unused selectors" if config.production else "Pass stylesheets through (development)",
    )
    scripts = registry.task(
        "scripts",
        unit(actions.minify_scripts, config),
        [f"{out}/{SCRIPTS_OUT_DIR}/**/*.min.js"],
        "Minify scripts",
    )
    copy_scripts = registry.task(
        "copy-scripts",
        unit(actions.copy_scripts, config),
        [f"{out}/{SCRIPTS_OUT_DIR}/**/*"],
        "Copy non-entry script files",
    )
    html = registry.task("html", unit(actions.assemble_html, config), [f"{out}/**/*.html"], "Assemble HTML includes")
    copy_images = registry.task(
        "copy-images",
        unit(actions.copy_images, config),
        [f"{out}/{IMAGES_OUT_DIR}/**/*"],
        "Copy images",
    )
    optimize_images = registry.task(
        "optimize-images",
        unit(actions.optimize_images, config),
        [f"{out}/{IMAGES_OUT_DIR}/**/*"],
        "Optimize images",
    )
    fonts = registry.task("fonts", unit(actions.copy_fonts, config), [f"{out}/{FONTS_OUT_DIR}/**/*"], "Copy fonts")

    images = optimize_images if config.production else copy_images

    # Dev server tasks
    async def start_server() -> None:
        # A sibling watch keeps the run open, so log here
        try:
            server.start()
        except OSError as e:
            logger.error(f"Dev server failed to start on {server.host}:{server.port}: {e}")
            raise

    async def reload_server() -> None:
        server.reload()

    serve = registry.task("serve", start_server, description=f"Serve {out} with live reload")
    reload = registry.task("reload", reload_server, description="Reload connected browsers")

    # Watch bindings - every chain ends in a reload, skipped when a step fails
    watcher = Watcher(
        config.source,
        interval=config.watch.interval,
        policy=OverlapPolicy(config.watch.overlap),
        callbacks=callbacks,
    )
    watcher.bind(WATCH_STYLES, sequential(styles, purge, reload, name="rebuild-styles"))
    watcher.bind(WATCH_SCRIPTS, sequential(scripts, copy_scripts, reload, name="rebuild-scripts"))
    watcher.bind(WATCH_HTML, sequential(html, reload, name="rebuild-html"))
    watcher.bind(WATCH_IMAGES, sequential(images, reload, name="rebuild-images"))
    watcher.bind(WATCH_FONTS, sequential(fonts, reload, name="rebuild-fonts"))

    watch = registry.task("watch", watcher.run, description=f"Watch {config.source} and rebuild on change")

    # Top-level pipelines
    build = registry.add(
        "build",
        sequential(
            clean,
            styles,
            purge,
            concurrent(scripts, html, images, copy_scripts, fonts, name="assets"),
            name="build",
        ),
    )
    default = registry.add("default", sequential(build, concurrent(serve, watch, name="serve-and-watch"), name="default"))

    registry.freeze()

    return Pipeline(
        config=config,
        registry=registry,
        server=server,
        watcher=watcher,
        build=build,
        default=default,
    )
