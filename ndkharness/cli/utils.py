"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ndkharness.config.parser import NdkHarnessConfig, load_config
from ndkharness.core.exceptions import ConfigError
from ndkharness.core.locking import LockManager
from ndkharness.pipeline import Pipeline

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def parse_dependency_overrides(values: Optional[List[str]]) -> Dict[str, Path]:
    """
    Parse repeated ``--dep NAME=PATH`` options.

    Raises:
        ConfigError: If an entry is not of the form NAME=PATH

    Example:
        >>> parse_dependency_overrides(["openssl=/opt/openssl_arm64"])
        {'openssl': PosixPath('/opt/openssl_arm64')}
    """
    overrides = {}
    for value in values or []:
        name, sep, path = value.partition("=")
        if not sep or not name.strip() or not path.strip():
            raise ConfigError(f"Invalid dependency override '{value}' (expected NAME=PATH)")
        overrides[name.strip()] = Path(path.strip())
    return overrides


def resolve_project_root(path: Optional[Path] = None) -> Path:
    """
    Resolve project root directory.

    Args:
        path: Optional path (defaults to current directory)

    Returns:
        Resolved absolute path
    """
    if path is None:
        path = Path.cwd()
    return Path(path).resolve()


def load_project(args) -> Tuple[NdkHarnessConfig, Path]:
    """Load the configuration named by the global CLI options."""
    project_root = resolve_project_root(getattr(args, "project_root", None))
    config = load_config(project_root, getattr(args, "config", None))
    logger.debug(f"Project root: {project_root}")
    return config, project_root


def create_pipeline(args) -> Pipeline:
    config, project_root = load_project(args)
    lock_manager = LockManager(Path(config.build_folder) / "lock")
    return Pipeline(config, project_root, lock_manager=lock_manager)


# ============================================================================
# Output Formatting
# ============================================================================


def format_success_message(
    title: str,
    details: Dict[str, Any],
    next_steps: Optional[list] = None,
    width: int = 70,
) -> str:
    """
    Format a standardized success message.

    Args:
        title: Success message title
        details: Key-value pairs to display
        next_steps: Optional list of next step instructions
        width: Width of message box

    Returns:
        Formatted message string
    """
    lines = []
    lines.append("=" * width)
    lines.append(title)
    lines.append("=" * width)
    lines.append("")

    for key, value in details.items():
        lines.append(f"{key}: {value}")

    if next_steps:
        lines.append("")
        lines.append("Next steps:")
        for step in next_steps:
            lines.append(f"  {step}")

    lines.append("")
    return "\n".join(lines)


def print_warning(message: str):
    """Print warning message to stderr."""
    print(f"WARNING: {message}", file=sys.stderr)
