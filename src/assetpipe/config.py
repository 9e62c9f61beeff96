"""
Configuration management with YAML loading and environment variable support.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .constants import ENV_MODE_VAR, PRODUCTION, PURGE_CONTENT_GLOBS, PURGE_SAFELIST, PURGE_SAFELIST_PATTERNS
from .errors import ConfigError

OVERLAP_POLICIES = ("queue", "drop", "parallel")


def _env_path(env_var: str, default: Path) -> Path:
    """Get path from environment variable or return default."""
    if value := os.environ.get(env_var):
        return Path(value)
    return default


def is_production_env() -> bool:
    """Check the mode switch in the environment."""
    return os.environ.get(ENV_MODE_VAR, "").strip().lower() == PRODUCTION


@dataclass
class PathsConfig:
    """Source and output roots - both can be overridden via environment variables."""

    source: Path = field(default_factory=lambda: _env_path("ASSETPIPE_SOURCE", Path("src")))
    output: Path = field(default_factory=lambda: _env_path("ASSETPIPE_OUTPUT", Path("dist")))


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3000
    open_browser: bool = True
    cors: bool = True


@dataclass
class WatchConfig:
    interval: float = 0.5  # seconds between polls
    overlap: str = "queue"  # "queue", "drop" or "parallel"


@dataclass
class PurgeConfig:
    content: list[str] = field(default_factory=lambda: list(PURGE_CONTENT_GLOBS))
    safelist: list[str] = field(default_factory=lambda: list(PURGE_SAFELIST))
    safelist_patterns: list[str] = field(default_factory=lambda: list(PURGE_SAFELIST_PATTERNS))
    keep_font_face: bool = True
    keep_keyframes: bool = True


@dataclass
class ImagesConfig:
    jpeg_quality: int = 75
    webp_quality: int = 75
    progressive: bool = True


@dataclass
class ToolsConfig:
    sass: str = "sass"
    terser: str = "terser"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class BuildConfig:
    production: bool = field(default_factory=is_production_env)
    paths: PathsConfig = field(default_factory=PathsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    purge: PurgeConfig = field(default_factory=PurgeConfig)
    images: ImagesConfig = field(default_factory=ImagesConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def source(self) -> Path:
        return self.paths.source

    @property
    def output(self) -> Path:
        return self.paths.output

    @property
    def mode(self) -> str:
        return "production" if self.production else "development"

    @classmethod
    def from_yaml(cls, path: Path) -> "BuildConfig":
        """Load configuration from YAML file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "BuildConfig":
        """Build a config from parsed YAML, ignoring unknown keys."""
        config = cls()

        if "production" in data:
            config.production = bool(data["production"])

        if "paths" in data:
            for key, value in data["paths"].items():
                if hasattr(config.paths, key):
                    setattr(config.paths, key, Path(value) if isinstance(value, str) else value)

        for section in ("server", "watch", "purge", "images", "tools", "logging"):
            if section in data:
                target = getattr(config, section)
                for key, value in (data[section] or {}).items():
                    if hasattr(target, key):
                        setattr(target, key, value)

        return config

    def _to_dict(self) -> dict:
        """Plain-dict form of the config (paths as strings)."""
        result: dict = {"production": self.production}
        for attr in ["paths", "server", "watch", "purge", "images", "tools", "logging"]:
            section = getattr(self, attr)
            result[attr] = {
                key: str(value) if isinstance(value, Path) else value for key, value in vars(section).items()
            }
        return result


def _get_default_config_dir() -> Path:
    """Directory searched for config.yaml when no project-local file exists."""
    # Explicit override
    if config_dir := os.environ.get("ASSETPIPE_CONFIG_DIR"):
        return Path(config_dir)

    # XDG base directory
    if xdg_config := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_config) / "assetpipe"

    return Path.home() / ".config" / "assetpipe"


def load_config(config_path: Path | None = None, production: bool | None = None) -> BuildConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to config file (default: searches standard locations)
        production: Overrides the mode switch from the environment and file

    Returns:
        BuildConfig
    """
    if config_path is None:
        # Project-local config wins over the user config dir
        search_paths = [
            Path.cwd() / "assetpipe.yaml",
            Path.cwd() / "assetpipe.yml",
            _get_default_config_dir() / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = path
                break

    config = BuildConfig.from_yaml(config_path) if config_path else BuildConfig()

    # The environment switch always beats the file
    if is_production_env():
        config.production = True
    if production is not None:
        config.production = production

    validate_config(config)
    return config


def validate_config(config: BuildConfig) -> None:
    """Raise ConfigError for values the pipeline cannot work with."""
    if config.watch.overlap not in OVERLAP_POLICIES:
        raise ConfigError(f"watch.overlap must be one of {', '.join(OVERLAP_POLICIES)}, got {config.watch.overlap!r}")
    if config.watch.interval <= 0:
        raise ConfigError(f"watch.interval must be positive, got {config.watch.interval}")
    if config.paths.source.exists() and not config.paths.source.is_dir():
        raise ConfigError(f"Source root is not a directory: {config.paths.source}")
    source = config.paths.source.resolve()
    output = config.paths.output.resolve()
    if output == source:
        raise ConfigError("Output root must differ from the source root")
    # Output under the source would be read back as sources and retrigger the watcher
    if source in output.parents:
        raise ConfigError(f"Output root must not be inside the source root: {config.paths.output}")
