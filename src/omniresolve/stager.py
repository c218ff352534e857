"""Artifact Stager - best-effort copy of runtime libraries next to the binary.

A runtime library is copied into a destination only if the destination copy
is missing or older than the source (modification time), the same rule the
incremental compiler uses for object files. Copies keep the source timestamp,
so staging an unchanged library again does nothing and incremental build
caches are not invalidated. Copies land under a temporary name and are
renamed into place, so an interrupted copy never looks current.

Staging never fails a resolve. The runtime dependency declaration in
ResolvedConfig is authoritative; this module only saves a manual copy. Every
destination is handled independently and reported as a StageOutcome.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, List

from .models import StageOutcome, StageStatus, StagingTask

logger = logging.getLogger(__name__)


def needs_copy(source: Path, destination: Path) -> bool:
    """Check whether ``destination`` is missing or strictly older than ``source``.

    Raises:
        OSError: If the source cannot be stat'ed
    """
    if not destination.exists():
        return True
    return destination.stat().st_mtime_ns < source.stat().st_mtime_ns


def ensure_directory(directory: Path) -> StageOutcome:
    """Create a directory (with parents) if it is missing.

    Returns:
        CREATED, UP_TO_DATE if it already existed, or FAILED with the error text
    """
    if directory.is_dir():
        return StageOutcome(destination=directory, status=StageStatus.UP_TO_DATE)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot create directory {directory}: {e}")
        return StageOutcome(destination=directory, status=StageStatus.FAILED, error=str(e))
    logger.debug(f"Created directory {directory}")
    return StageOutcome(destination=directory, status=StageStatus.CREATED)


def _copy_atomic(source: Path, destination: Path) -> None:
    """Copy ``source`` over ``destination`` through a temp file in the same directory.

    A copy that fails partway never leaves a truncated file under the final
    name, so the mtime rule cannot mistake it for an up-to-date copy.
    """
    temp_file = destination.with_name(f".{destination.name}.tmp")
    try:
        shutil.copy2(source, temp_file)
        os.replace(temp_file, destination)
    except OSError:
        try:
            temp_file.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.debug(f"Could not remove partial copy {temp_file}: {cleanup_error}")
        raise


def _stage_into(source: Path, directory: Path) -> StageOutcome:
    destination = directory / source.name
    try:
        directory.mkdir(parents=True, exist_ok=True)
        if not needs_copy(source, destination):
            logger.debug(f"Up to date: {destination}")
            return StageOutcome(destination=directory, status=StageStatus.UP_TO_DATE)
        _copy_atomic(source, destination)
    except OSError as e:
        # Covers PermissionError and read-only destinations
        logger.warning(f"Failed to stage {source.name} into {directory}: {e}")
        return StageOutcome(destination=directory, status=StageStatus.FAILED, error=str(e))

    logger.debug(f"Copied {source} -> {destination}")
    return StageOutcome(destination=directory, status=StageStatus.COPIED)


def stage(task: StagingTask) -> List[StageOutcome]:
    """Copy one runtime library into each destination directory.

    Args:
        task: Source artifact and destination directories

    Returns:
        One outcome per destination, or a single SOURCE_MISSING outcome when
        the source does not exist (nothing is created in that case)
    """
    source = task.source_artifact
    if not source.is_file():
        logger.debug(f"Staging skipped, source missing: {source}")
        return [StageOutcome(destination=source, status=StageStatus.SOURCE_MISSING)]

    return [_stage_into(source, directory) for directory in task.destination_directories]


def stage_all(tasks: Iterable[StagingTask]) -> List[StageOutcome]:
    outcomes: List[StageOutcome] = []
    for task in tasks:
        outcomes.extend(stage(task))
    return outcomes
