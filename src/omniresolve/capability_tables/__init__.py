"""Capability table loader.

Capability tables ship as JSON files inside this package and are read through
importlib.resources so they resolve correctly when installed as a wheel. A
table file outside the package can be loaded with load_table_file().

The table named by DEFAULT_TABLE describes the OmniCapture plugin.
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from omniresolve.capability_model import CapabilityTable
from omniresolve.errors import CapabilityTableError

DEFAULT_TABLE = "omnicapture"


def load_raw_table(name: str) -> dict[str, Any] | None:
    """Load the raw JSON of a packaged table.

    Args:
        name: Table name without the .json extension (e.g. 'omnicapture')

    Returns:
        The table dictionary if found, None otherwise.
    """
    if not name:
        return None

    try:
        table_file = resources.files(__package__).joinpath(f"{name}.json")
        if table_file.is_file():
            with table_file.open("r", encoding="utf-8") as f:
                return json.load(f)
    except (FileNotFoundError, TypeError):
        pass

    return None


def load_table(name: str = DEFAULT_TABLE) -> CapabilityTable:
    """Load and validate a packaged capability table.

    Raises:
        CapabilityTableError: If no such table exists or it is invalid
    """
    data = load_raw_table(name)
    if data is None:
        available = ", ".join(list_available_tables()) or "none"
        raise CapabilityTableError(f"Unknown capability table: {name!r} (available: {available})")
    return CapabilityTable.from_dict(data)


def load_table_file(path: Path) -> CapabilityTable:
    """Load and validate a capability table from an arbitrary JSON file.

    Raises:
        CapabilityTableError: If the file cannot be read, is not JSON, or is invalid
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CapabilityTableError(f"Cannot read capability table {path}: {e}")
    except json.JSONDecodeError as e:
        raise CapabilityTableError(f"Capability table {path} is not valid JSON: {e}")
    return CapabilityTable.from_dict(data)


def load_table_spec(spec: str) -> CapabilityTable:
    """Load a table given either a packaged table name or a path to a .json file."""
    if spec.endswith(".json") or "/" in spec or "\\" in spec:
        return load_table_file(Path(spec))
    return load_table(spec)


def list_available_tables() -> list[str]:
    """List packaged capability table names (without .json extension)."""
    tables = []
    try:
        for f in resources.files(__package__).iterdir():
            if f.name.endswith(".json") and f.is_file():
                tables.append(f.name[:-5])
    except (TypeError, AttributeError, FileNotFoundError):
        pass

    return sorted(tables)
