"""Capability Prober.

Decides whether a capability is usable by checking the artifacts that prove it:
headers, runtime libraries, SDK directories, or scanner-discovered modules.

Rules:
    - Mandatory checks run in declared order and every failure is reported,
      so the operator sees the complete gap instead of just the first item.
    - A check located under a mandatory directory that is already missing is
      not reported again; the missing directory covers it.
    - An artifact whose path could not be expanded (its directory was not
      supplied) is missing, like an artifact absent from disk.
    - A module-discovered capability also needs at least one discovered module.
    - Optional library lookups never change the verdict. A library missing
      from every candidate directory only means the capability falls back to
      runtime-only resolution.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .models import ArtifactCheck, ArtifactKind, CapabilityProbe, LibraryLookup, ProbeResult

logger = logging.getLogger(__name__)


def _is_under(path: Path, directory: Path) -> bool:
    return directory in path.parents


def check_artifacts(checks: Tuple[ArtifactCheck, ...]) -> List[str]:
    """Evaluate mandatory artifact checks and collect what is missing.

    Args:
        checks: Artifact checks in declared order; optional ones are ignored here

    Returns:
        Descriptions of missing artifacts, in declared order
    """
    missing: List[str] = []
    missing_dirs: List[Path] = []

    for check in checks:
        if not check.mandatory:
            continue
        if any(_is_under(check.path, d) for d in missing_dirs):
            logger.debug(f"Skipping {check.path}: parent directory already missing")
            continue
        if check.kind.exists(check.path):
            logger.debug(f"Found {check.kind.value}: {check.path}")
            continue

        logger.debug(f"Missing {check.kind.value}: {check.path}")
        missing.append(check.description)
        if check.kind is ArtifactKind.DIRECTORY:
            missing_dirs.append(check.path)

    return missing


def find_library(lookup: LibraryLookup) -> Optional[Path]:
    """Return the library from the first candidate directory that has it.

    Candidates are tried in declared priority order; later candidates are not
    consulted once one matches.
    """
    for directory in lookup.candidate_directories:
        if not directory.is_dir():
            continue
        candidate = directory / lookup.name
        if candidate.is_file():
            return candidate
    return None


def probe(capability: CapabilityProbe) -> ProbeResult:
    """Decide one capability.

    Args:
        capability: Artifact checks, discovered modules and optional lookups

    Returns:
        ProbeResult with the enabled verdict and the itemized gaps
    """
    missing = list(capability.unresolved_artifacts)
    missing.extend(check_artifacts(capability.required_artifacts))

    # Optional checks still run, but only for their report
    for check in capability.required_artifacts:
        if not check.mandatory and not check.kind.exists(check.path):
            logger.info(f"{capability.capability_id}: optional {check.description} not found")

    if capability.scans_modules and not capability.discovered_modules:
        missing.append("No third-party modules discovered")

    enabled = not missing

    libraries: List[Path] = []
    missing_libraries: List[str] = []
    if enabled:
        for lookup in capability.library_lookups:
            found = find_library(lookup)
            if found is None:
                missing_libraries.append(lookup.description or lookup.name)
                logger.debug(f"{capability.capability_id}: {lookup.name} not in any of {[str(d) for d in lookup.candidate_directories]}")
            else:
                libraries.append(found)

    return ProbeResult(
        capability_id=capability.capability_id,
        enabled=enabled,
        missing=tuple(missing),
        discovered_modules=tuple(sorted(capability.discovered_modules)),
        libraries=tuple(libraries),
        missing_libraries=tuple(missing_libraries),
    )
