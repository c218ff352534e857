"""Third-party module scanner.

Walks an engine third-party source tree and extracts the module names declared
in ``<Prefix>*.Build.cs`` descriptor files. Each descriptor is read line by
line and the first ``class <Name> : ModuleRules`` declaration wins; there is
no attempt to parse the file any further.

Vendor trees do not agree on casing (``OpenEXR`` vs ``OpenExr``), so callers
pass every spelling to scan_modules() and get the union back.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Union

from .models import ModuleDescriptor

logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIX = ".Build.cs"

# e.g. "public class OpenEXR : ModuleRules" or "class Imath: ModuleRules"
MODULE_DECLARATION = re.compile(r"^\s*(?:(?:public|internal|sealed|partial)\s+)*class\s+([A-Za-z0-9_]+)\s*:\s*ModuleRules\b")


def extract_module_name(descriptor: Path) -> Optional[str]:
    """Return the module name declared in a descriptor file.

    Args:
        descriptor: Path to a ``*.Build.cs`` file

    Returns:
        The first declared module name, or None if no line declares one or the
        file cannot be read
    """
    try:
        with open(descriptor, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                match = MODULE_DECLARATION.match(line)
                if match:
                    return match.group(1)
    except OSError as e:
        logger.warning(f"Cannot read module descriptor {descriptor}: {e}")
    return None


def scan(root: Optional[Union[Path, str]], prefix: str) -> set[ModuleDescriptor]:
    """Find modules declared by descriptor files whose name starts with ``prefix``.

    Args:
        root: Third-party source directory. None, "" or a missing directory
            yields an empty set.
        prefix: Descriptor filename prefix (case-sensitive on most filesystems)

    Returns:
        Module descriptors, at most one per module name
    """
    if root is None or str(root) == "":
        return set()

    root = Path(root)
    if not root.is_dir():
        logger.debug(f"Third-party directory not found: {root}")
        return set()

    by_name: dict[str, ModuleDescriptor] = {}
    for descriptor in sorted(root.rglob(f"{prefix}*{DESCRIPTOR_SUFFIX}")):
        if not descriptor.is_file():
            continue
        name = extract_module_name(descriptor)
        if name is None:
            logger.debug(f"No module declaration in {descriptor}")
            continue
        if name not in by_name:
            by_name[name] = ModuleDescriptor(name=name, source_path=descriptor)
            logger.debug(f"Found module {name} in {descriptor}")

    return set(by_name.values())


def scan_modules(root: Optional[Union[Path, str]], prefixes: Iterable[str]) -> set[ModuleDescriptor]:
    """Scan once per prefix variant and union the results.

    When two descriptor files declare the same module, the one found first
    (by prefix order, then path order) is kept.
    """
    by_name: dict[str, ModuleDescriptor] = {}
    for prefix in prefixes:
        for descriptor in sorted(scan(root, prefix), key=lambda d: d.source_path):
            by_name.setdefault(descriptor.name, descriptor)
    return set(by_name.values())


def module_names(descriptors: Iterable[ModuleDescriptor]) -> tuple[str, ...]:
    """Sorted, unique module names, as fed into the build graph."""
    return tuple(sorted({d.name for d in descriptors}))
