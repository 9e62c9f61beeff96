"""
Tools module - Locate and run the external compilers (sass, terser).
"""

import shutil
import subprocess
from pathlib import Path

from .errors import TransformError

# Project-local install location for npm-provided tools
LOCAL_BIN_DIR = Path("node_modules") / ".bin"

# Install hints shown by `assetpipe check`
TOOL_HINTS = {
    "sass": "npm install --save-dev sass",
    "terser": "npm install --save-dev terser",
}


def get_tool_path(tool_name: str) -> Path | None:
    """
    Find a tool in standard locations.

    Search order:
    1. Explicit path (when tool_name contains a path separator)
    2. Project local bin (./node_modules/.bin)
    3. System PATH
    """
    explicit = Path(tool_name)
    if explicit.parent != Path("."):
        return explicit if explicit.exists() else None

    local_path = LOCAL_BIN_DIR / tool_name
    if local_path.exists():
        return local_path

    sys_path = shutil.which(tool_name)
    if sys_path:
        return Path(sys_path)

    return None


def run_tool(task: str, tool: str, args: list[str], source: Path, timeout: int = 120) -> str:
    """
    Run an external tool for one input file.

    Returns:
        The tool's stdout

    Raises:
        TransformError: tool missing, timed out or exited non-zero
    """
    tool_path = get_tool_path(tool)
    if tool_path is None:
        hint = TOOL_HINTS.get(Path(tool).name, "")
        raise TransformError(task, f"'{tool}' not found. {hint}".strip(), path=source)

    cmd = [str(tool_path), *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise TransformError(task, f"'{tool}' timed out after {timeout}s", path=source) from None
    except OSError as e:
        raise TransformError(task, e, path=source) from e

    if result.returncode != 0:
        message = (result.stderr or result.stdout or "").strip() or f"exit code {result.returncode}"
        raise TransformError(task, message, path=source)

    return result.stdout


def check_tools_status(tools: list[str] | None = None) -> dict[str, Path | None]:
    """
    Check status of the external tools.

    Returns:
        Dict mapping tool name to path (None if not found)
    """
    names = tools or list(TOOL_HINTS)
    return {name: get_tool_path(name) for name in names}
