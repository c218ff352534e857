"""
Value types flowing through a resolve pass.

Scanner -> Prober -> Assembler -> Stager exchange only these frozen
dataclasses. Nothing here is shared between passes; every resolve builds
fresh values.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


class ArtifactKind(Enum):
    """What an artifact check expects to find on disk."""

    DIRECTORY = "directory"
    FILE = "file"

    @classmethod
    def from_string(cls, value: str) -> "ArtifactKind":
        """Convert a table string ("directory" / "file") to an ArtifactKind.

        Raises:
            ValueError: If the value is not a known kind
        """
        return cls(str(value).lower())

    def exists(self, path: Path) -> bool:
        if self is ArtifactKind.DIRECTORY:
            return path.is_dir()
        return path.is_file()


@dataclass(frozen=True)
class ModuleDescriptor:
    """A third-party build module declared in a ``*.Build.cs`` descriptor file.

    Attributes:
        name: Module identifier extracted from the class declaration
        source_path: Descriptor file the name was read from
    """

    name: str
    source_path: Path


@dataclass(frozen=True)
class ArtifactCheck:
    """A file or directory whose presence proves part of a capability usable.

    Attributes:
        kind: Whether a directory or a regular file is expected
        path: Absolute path to check
        description: Human-readable label reported when the check fails
        mandatory: Mandatory checks decide the enabled verdict
    """

    kind: ArtifactKind
    path: Path
    description: str
    mandatory: bool = True


@dataclass(frozen=True)
class LibraryLookup:
    """Optional import library searched for in candidate directories.

    Candidates are tried in declared order and the first directory that
    contains ``name`` wins.
    """

    name: str
    candidate_directories: Tuple[Path, ...]
    description: str = ""


@dataclass(frozen=True)
class CapabilityProbe:
    """Everything the prober needs to decide one capability.

    Attributes:
        capability_id: Table identifier of the capability (e.g. "nvenc")
        required_artifacts: Artifact checks, evaluated in order
        discovered_modules: Module names found by the scanner
        library_lookups: Optional import libraries (never affect the verdict)
        scans_modules: True when the capability is proven by discovered modules
        unresolved_artifacts: Mandatory artifacts whose path needs a directory the
            caller did not supply; each one counts as missing
    """

    capability_id: str
    required_artifacts: Tuple[ArtifactCheck, ...] = ()
    discovered_modules: frozenset = frozenset()
    library_lookups: Tuple[LibraryLookup, ...] = ()
    scans_modules: bool = False
    unresolved_artifacts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProbeResult:
    """Verdict for one capability.

    Attributes:
        capability_id: Table identifier of the capability
        enabled: True when every mandatory check succeeded
        missing: Descriptions of missing mandatory artifacts, in declared order
        discovered_modules: Scanner-discovered module names, sorted
        companion_modules: Modules linked alongside when enabled (e.g. Imath), sorted
        libraries: Import libraries found by optional lookups
        missing_libraries: Optional libraries that were not found
        skipped_reason: Why the capability was not probed at all (platform gating)
    """

    capability_id: str
    enabled: bool
    missing: Tuple[str, ...] = ()
    discovered_modules: Tuple[str, ...] = ()
    companion_modules: Tuple[str, ...] = ()
    libraries: Tuple[Path, ...] = ()
    missing_libraries: Tuple[str, ...] = ()
    skipped_reason: Optional[str] = None

    @classmethod
    def skipped(cls, capability_id: str, reason: str) -> "ProbeResult":
        return cls(capability_id=capability_id, enabled=False, skipped_reason=reason)


@dataclass(frozen=True)
class StagingTask:
    """A runtime shared library that must sit next to the final binary."""

    source_artifact: Path
    destination_directories: Tuple[Path, ...]


class StageStatus(Enum):
    """Outcome of staging into one destination."""

    COPIED = "copied"
    UP_TO_DATE = "up_to_date"
    CREATED = "created"
    SOURCE_MISSING = "source_missing"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is not StageStatus.FAILED


@dataclass(frozen=True)
class StageOutcome:
    """Result of one best-effort staging step.

    Attributes:
        destination: Destination directory (or the source path for SOURCE_MISSING)
        status: What happened
        error: Error text when status is FAILED
    """

    destination: Path
    status: StageStatus
    error: Optional[str] = None


@dataclass(frozen=True)
class ResolvedConfig:
    """Terminal output of the assembler, consumed by the build graph.

    Attributes:
        enabled_capabilities: Identifiers of enabled capabilities
        definitions: Compile-time definitions, every value 0 or 1
        extra_dependencies: Additional module dependency names, in priority order
        extra_include_paths: Additional include search paths, first-seen order, no duplicates
        extra_libraries: Linkable import library paths
        runtime_dependencies: Runtime artifacts that must accompany the binary
        delay_load_libraries: Shared library names to delay-load
        system_libraries: Platform system libraries to link
        staging_tasks: Runtime libraries to copy next to the binary
        ensure_directories: Output directories that must exist before linking
    """

    enabled_capabilities: frozenset = frozenset()
    definitions: Dict[str, int] = field(default_factory=dict)
    extra_dependencies: Tuple[str, ...] = ()
    extra_include_paths: Tuple[Path, ...] = ()
    extra_libraries: Tuple[Path, ...] = ()
    runtime_dependencies: Tuple[str, ...] = ()
    delay_load_libraries: Tuple[str, ...] = ()
    system_libraries: Tuple[str, ...] = ()
    staging_tasks: Tuple[StagingTask, ...] = ()
    ensure_directories: Tuple[Path, ...] = ()

    def is_enabled(self, capability_id: str) -> bool:
        return capability_id in self.enabled_capabilities

    def definition_strings(self) -> list[str]:
        """Definitions in ``NAME=VALUE`` form, as handed to the compiler."""
        return [f"{name}={value}" for name, value in self.definitions.items()]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-serializable dictionary.

        Returns:
            Dictionary representation with paths as strings
        """
        return {
            "enabled_capabilities": sorted(self.enabled_capabilities),
            "definitions": dict(self.definitions),
            "extra_dependencies": list(self.extra_dependencies),
            "extra_include_paths": [str(p) for p in self.extra_include_paths],
            "extra_libraries": [str(p) for p in self.extra_libraries],
            "runtime_dependencies": list(self.runtime_dependencies),
            "delay_load_libraries": list(self.delay_load_libraries),
            "system_libraries": list(self.system_libraries),
            "staging_tasks": [
                {
                    "source_artifact": str(task.source_artifact),
                    "destination_directories": [str(d) for d in task.destination_directories],
                }
                for task in self.staging_tasks
            ],
            "ensure_directories": [str(p) for p in self.ensure_directories],
        }
