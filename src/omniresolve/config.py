"""
Environment configuration for omniresolve.

Every CLI option has an environment fallback so build scripts can configure
the resolver once per machine:

- OMNIRESOLVE_THIRDPARTY_DIR: engine third-party source directory (SDK root)
- OMNIRESOLVE_PLUGIN_DIR: plugin root directory (default: current directory)
- OMNIRESOLVE_PROJECT_DIR: project directory (optional)
- OMNIRESOLVE_PLATFORM: target platform name (default: host platform)
- OMNIRESOLVE_TABLE: packaged table name or path to a table JSON file
"""

import os
from pathlib import Path
from typing import Optional

from .capability_tables import DEFAULT_TABLE
from .platforms import PlatformId


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name, "").strip()
    return Path(value) if value else None


def get_thirdparty_dir() -> Optional[Path]:
    """Third-party SDK root, or None when unset (treated as "no SDKs available")."""
    return _env_path("OMNIRESOLVE_THIRDPARTY_DIR")


def get_plugin_dir() -> Path:
    return _env_path("OMNIRESOLVE_PLUGIN_DIR") or Path.cwd()


def get_project_dir() -> Optional[Path]:
    return _env_path("OMNIRESOLVE_PROJECT_DIR")


def get_platform() -> PlatformId:
    """Target platform from OMNIRESOLVE_PLATFORM, falling back to the host.

    Raises:
        UnknownPlatformError: If OMNIRESOLVE_PLATFORM is set to an unknown name
    """
    value = os.environ.get("OMNIRESOLVE_PLATFORM", "").strip()
    if value:
        return PlatformId.from_string(value)
    return PlatformId.host()


def get_table_spec() -> str:
    return os.environ.get("OMNIRESOLVE_TABLE", "").strip() or DEFAULT_TABLE
