"""Shared pytest fixtures for assetpipe tests."""

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from assetpipe.config import BuildConfig, PathsConfig


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's environment out of config resolution."""
    for var in ("ASSETPIPE_ENV", "ASSETPIPE_SOURCE", "ASSETPIPE_OUTPUT", "ASSETPIPE_CONFIG_DIR"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", "/nonexistent-assetpipe-config")


@pytest.fixture
def tmp_project(tmp_path):
    """Create a project with a source tree holding one of everything."""
    src = tmp_path / "src"
    (src / "scss" / "components").mkdir(parents=True)
    (src / "scripts" / "vendor").mkdir(parents=True)
    (src / "img").mkdir(parents=True)
    (src / "fonts").mkdir(parents=True)
    (src / "partials").mkdir(parents=True)

    (src / "scss" / "main.scss").write_text("@use 'components/button';\n.hero { color: red; }\n")
    (src / "scss" / "components" / "_button.scss").write_text(".btn-primary { color: blue; }\n")

    (src / "scripts" / "script.js").write_text("function hello() { return 1; }\n")
    (src / "scripts" / "vendor" / "lib.min.js").write_text("var lib=1;\n")
    (src / "scripts" / "data.json").write_text('{"a": 1}\n')

    (src / "partials" / "header.html").write_text("<header>Site</header>")
    (src / "index.html").write_text(
        '<html><body><include src="partials/header.html"></include><div class="hero"></div></body></html>'
    )

    (src / "img" / "logo.svg").write_text('<svg viewBox="0 0 1 1">\n  <!-- c -->\n  <rect/>\n</svg>\n')
    (src / "fonts" / "inter.woff2").write_bytes(b"wOF2 fake font")

    return tmp_path


@pytest.fixture
def project_config(tmp_project):
    """Build config pointing at tmp_project's src/ and dist/."""
    return BuildConfig(
        production=False,
        paths=PathsConfig(source=tmp_project / "src", output=tmp_project / "dist"),
    )


@pytest.fixture
def sample_config(tmp_path):
    """Create a sample config file."""
    config_file = tmp_path / "assetpipe.yaml"
    config_file.write_text(
        f"""
production: true

paths:
  source: "{tmp_path / "site"}"
  output: "{tmp_path / "public"}"

server:
  port: 8080
  open_browser: false

watch:
  interval: 0.25
  overlap: drop

images:
  jpeg_quality: 60
"""
    )
    (tmp_path / "site").mkdir()
    return config_file


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for tests that call external tools."""
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock_run


@pytest.fixture(name="_mock_shutil_which")
def mock_shutil_which():
    """Mock shutil.which to simulate available tools."""

    def which_side_effect(tool):
        available = {"sass"}
        return f"/usr/bin/{tool}" if tool in available else None

    with patch("shutil.which", side_effect=which_side_effect) as mock:
        yield mock
