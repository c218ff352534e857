"""
Type-safe capability table models.

A capability table is the caller-supplied description of every optional
feature the plugin can build with: which artifacts prove it usable, which
module prefixes discover it, and what it contributes to the build once enabled.
Tables are parsed from JSON into the frozen dataclasses below so that a
malformed table fails loudly before any filesystem work happens.

Path values are templates. The placeholders below are expanded per resolve:

    {plugin_dir}      Plugin root directory
    {thirdparty_dir}  Engine third-party source directory (optional)
    {project_dir}     Project directory (optional)
    {platform}        Target platform name (e.g. "Win64")

A directory the caller did not supply reads as ``<unset>`` in descriptions.
A mandatory artifact that needs it counts as missing; include paths, staging
paths and library candidates that need it are dropped.

Artifact descriptions may also use ``{path}`` for the expanded artifact path.
"""

from dataclasses import dataclass, field
from pathlib import Path
from string import Formatter
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import CapabilityTableError, ResolveError, UnknownPlatformError
from .models import ArtifactCheck, ArtifactKind, CapabilityProbe, LibraryLookup
from .platforms import PlatformId

PATH_PLACEHOLDERS = frozenset({"plugin_dir", "thirdparty_dir", "project_dir", "platform"})
DESCRIPTION_PLACEHOLDERS = PATH_PLACEHOLDERS | {"path"}
UNSET = "<unset>"


def _placeholders(template: str, where: str) -> set[str]:
    try:
        return {name for _, name, _, _ in Formatter().parse(template) if name is not None}
    except ValueError as e:
        raise CapabilityTableError(f"Malformed template in {where}: {template!r} ({e})")


def _check_template(template: str, allowed: frozenset, where: str) -> str:
    unknown = _placeholders(template, where) - allowed
    if unknown:
        raise CapabilityTableError(f"Unknown placeholder(s) {sorted(unknown)} in {where}: {template!r}")
    return template


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise CapabilityTableError(f"Expected an object for {where}, got {type(data).__name__}")
    try:
        return data[key]
    except KeyError as e:
        raise CapabilityTableError(f"Missing required field in {where}: {e}")


def _string(data: Dict[str, Any], key: str, where: str) -> str:
    value = _require(data, key, where)
    if not isinstance(value, str) or not value:
        raise CapabilityTableError(f"Field '{key}' in {where} must be a non-empty string")
    return value


def _string_list(data: Dict[str, Any], key: str, where: str) -> Tuple[str, ...]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise CapabilityTableError(f"Field '{key}' in {where} must be a list of non-empty strings")
    return tuple(value)


def _path_list(data: Dict[str, Any], key: str, where: str) -> Tuple[str, ...]:
    return tuple(_check_template(t, PATH_PLACEHOLDERS, f"{where}.{key}") for t in _string_list(data, key, where))


def _platform_list(values: Iterable[str], where: str) -> Tuple[PlatformId, ...]:
    try:
        return tuple(PlatformId.from_string(v) for v in values)
    except UnknownPlatformError as e:
        raise CapabilityTableError(f"Invalid platform in {where}: {e}")


@dataclass
class PathContext:
    """Values substituted into path templates for one resolve pass."""

    plugin_dir: Optional[Path]
    thirdparty_dir: Optional[Path]
    project_dir: Optional[Path]
    platform: PlatformId

    def values(self) -> Dict[str, Optional[str]]:
        return {
            "plugin_dir": str(self.plugin_dir) if self.plugin_dir else None,
            "thirdparty_dir": str(self.thirdparty_dir) if self.thirdparty_dir else None,
            "project_dir": str(self.project_dir) if self.project_dir else None,
            "platform": self.platform.value,
        }

    def display_values(self) -> Dict[str, str]:
        """Placeholder values for human-readable text; unset directories read as ``<unset>``."""
        return {name: UNSET if value is None else value for name, value in self.values().items()}

    def unset_placeholders(self, template: str) -> List[str]:
        """Placeholders in ``template`` that name a directory the caller did not supply."""
        values = self.values()
        return sorted(n for n in _placeholders(template, "path") if values.get(n) is None)

    def expand(self, template: str) -> Path:
        """Expand a path template.

        Raises:
            ResolveError: If the template needs a directory the caller did not supply
        """
        expanded = self.try_expand(template)
        if expanded is None:
            raise ResolveError(f"Path template {template!r} needs {', '.join(self.unset_placeholders(template))} but none was supplied")
        return expanded

    def try_expand(self, template: str) -> Optional[Path]:
        """Expand a path template, or return None when a referenced directory is unset."""
        values = self.values()
        for name in _placeholders(template, "path"):
            if values.get(name) is None:
                return None
        return Path(template.format(**values))


@dataclass(frozen=True)
class ModuleScanSpec:
    """Descriptor-file prefixes that discover a capability.

    Attributes:
        prefixes: Case variants of the SDK name; results are unioned
        companion_prefixes: Modules linked alongside once the capability is enabled
    """

    prefixes: Tuple[str, ...]
    companion_prefixes: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "ModuleScanSpec":
        prefixes = _string_list(data, "prefixes", where)
        if not prefixes:
            raise CapabilityTableError(f"{where}.prefixes must name at least one prefix")
        return cls(prefixes=prefixes, companion_prefixes=_string_list(data, "companion_prefixes", where))


@dataclass(frozen=True)
class ArtifactSpec:
    kind: ArtifactKind
    path: str
    description: str
    mandatory: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "ArtifactSpec":
        kind_name = _string(data, "kind", where)
        try:
            kind = ArtifactKind.from_string(kind_name)
        except ValueError:
            raise CapabilityTableError(f"Unknown artifact kind {kind_name!r} in {where} (expected 'directory' or 'file')")
        path = _check_template(_string(data, "path", where), PATH_PLACEHOLDERS, f"{where}.path")
        description = data.get("description", "{path}")
        if not isinstance(description, str):
            raise CapabilityTableError(f"Field 'description' in {where} must be a string")
        _check_template(description, DESCRIPTION_PLACEHOLDERS, f"{where}.description")
        mandatory = data.get("mandatory", True)
        if not isinstance(mandatory, bool):
            raise CapabilityTableError(f"Field 'mandatory' in {where} must be true or false")
        return cls(kind=kind, path=path, description=description, mandatory=mandatory)


@dataclass(frozen=True)
class LibraryLookupSpec:
    name: str
    candidates: Tuple[str, ...]
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "LibraryLookupSpec":
        candidates = _path_list(data, "candidates", where)
        if not candidates:
            raise CapabilityTableError(f"{where}.candidates must name at least one directory")
        return cls(name=_string(data, "name", where), candidates=candidates, description=data.get("description", ""))


@dataclass(frozen=True)
class StagingSpec:
    source: str
    destinations: Tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "StagingSpec":
        source = _check_template(_string(data, "source", where), PATH_PLACEHOLDERS, f"{where}.source")
        destinations = _path_list(data, "destinations", where)
        if not destinations:
            raise CapabilityTableError(f"{where}.destinations must name at least one directory")
        return cls(source=source, destinations=destinations)


@dataclass(frozen=True)
class CapabilityDefinition:
    """
    One optional capability.

    Attributes:
        id: Stable identifier (e.g. "nvenc")
        label: Display name used in diagnostics
        definition: Compile-time definition emitted as 0 or 1
        platforms: Platforms the capability applies to (empty = all)
        requires: Earlier capabilities that must be enabled first
        module_scan: Descriptor prefixes proving the capability (optional)
        artifacts: Artifact checks, in evaluation order
        library_lookups: Optional import libraries
        dependencies: Module dependencies added when enabled
        include_paths: Include path templates added when enabled
        delay_load: Shared libraries to delay-load when enabled
        runtime_dependencies: Runtime dependency declarations (kept verbatim)
        staging: Runtime libraries to copy next to the binary when enabled
    """

    id: str
    label: str
    definition: str
    platforms: Tuple[PlatformId, ...] = ()
    requires: Tuple[str, ...] = ()
    module_scan: Optional[ModuleScanSpec] = None
    artifacts: Tuple[ArtifactSpec, ...] = ()
    library_lookups: Tuple[LibraryLookupSpec, ...] = ()
    dependencies: Tuple[str, ...] = ()
    include_paths: Tuple[str, ...] = ()
    delay_load: Tuple[str, ...] = ()
    runtime_dependencies: Tuple[str, ...] = ()
    staging: Tuple[StagingSpec, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int) -> "CapabilityDefinition":
        """
        Parse a capability definition from a table entry.

        Raises:
            CapabilityTableError: If required fields are missing or invalid
        """
        where = f"capabilities[{index}]"
        cap_id = _string(data, "id", where)
        where = f"capability '{cap_id}'"

        scan_data = data.get("module_scan")
        module_scan = ModuleScanSpec.from_dict(scan_data, f"{where}.module_scan") if scan_data is not None else None

        def entries(key: str) -> List[Dict[str, Any]]:
            value = data.get(key, [])
            if not isinstance(value, list):
                raise CapabilityTableError(f"Field '{key}' in {where} must be a list")
            return value

        return cls(
            id=cap_id,
            label=data.get("label", cap_id),
            definition=_string(data, "definition", where),
            platforms=_platform_list(_string_list(data, "platforms", where), where),
            requires=_string_list(data, "requires", where),
            module_scan=module_scan,
            artifacts=tuple(ArtifactSpec.from_dict(a, f"{where}.artifacts[{i}]") for i, a in enumerate(entries("artifacts"))),
            library_lookups=tuple(LibraryLookupSpec.from_dict(lib, f"{where}.library_lookups[{i}]") for i, lib in enumerate(entries("library_lookups"))),
            dependencies=_string_list(data, "dependencies", where),
            include_paths=_path_list(data, "include_paths", where),
            delay_load=_string_list(data, "delay_load", where),
            runtime_dependencies=_string_list(data, "runtime_dependencies", where),
            staging=tuple(StagingSpec.from_dict(s, f"{where}.staging[{i}]") for i, s in enumerate(entries("staging"))),
        )

    def applies_to(self, platform: PlatformId) -> bool:
        return not self.platforms or platform in self.platforms

    def to_probe(self, context: PathContext, discovered_modules: Iterable[str] = ()) -> CapabilityProbe:
        """Expand this definition into a probe for the given resolve context.

        Mandatory artifacts whose path needs an unset directory become
        unresolved entries, which disable the capability. Optional artifacts
        and library candidates with such paths are dropped.
        """
        labels = context.display_values()
        checks = []
        unresolved = []
        for spec in self.artifacts:
            path = context.try_expand(spec.path)
            if path is None:
                if spec.mandatory:
                    description = spec.description.format(path=UNSET, **labels)
                    unresolved.append(f"{description}: {', '.join(context.unset_placeholders(spec.path))} not supplied")
                continue
            checks.append(ArtifactCheck(kind=spec.kind, path=path, description=spec.description.format(path=path, **labels), mandatory=spec.mandatory))

        lookups = []
        for spec in self.library_lookups:
            candidates = tuple(p for p in (context.try_expand(c) for c in spec.candidates) if p is not None)
            lookups.append(LibraryLookup(name=spec.name, candidate_directories=candidates, description=spec.description or spec.name))

        return CapabilityProbe(
            capability_id=self.id,
            required_artifacts=tuple(checks),
            discovered_modules=frozenset(discovered_modules),
            library_lookups=tuple(lookups),
            scans_modules=self.module_scan is not None,
            unresolved_artifacts=tuple(unresolved),
        )


@dataclass(frozen=True)
class PlatformSettings:
    """Contributions applied on a platform regardless of capability state."""

    dependencies: Tuple[str, ...] = ()
    system_libraries: Tuple[str, ...] = ()
    ensure_directories: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "PlatformSettings":
        if not isinstance(data, dict):
            raise CapabilityTableError(f"Expected an object for {where}")
        return cls(
            dependencies=_string_list(data, "dependencies", where),
            system_libraries=_string_list(data, "system_libraries", where),
            ensure_directories=_path_list(data, "ensure_directories", where),
        )


@dataclass(frozen=True)
class CapabilityTable:
    """
    Validated capability table.

    Attributes:
        name: Table name (e.g. "omnicapture")
        description: Free-form description
        static_definitions: Definitions emitted verbatim on every resolve
        platform_settings: Unconditional per-platform contributions
        capabilities: Capability definitions, in priority order
    """

    name: str
    description: str = ""
    static_definitions: Dict[str, int] = field(default_factory=dict)
    platform_settings: Dict[PlatformId, PlatformSettings] = field(default_factory=dict)
    capabilities: Tuple[CapabilityDefinition, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapabilityTable":
        """
        Parse and validate a capability table.

        Args:
            data: Raw table dictionary from JSON

        Returns:
            Validated CapabilityTable

        Raises:
            CapabilityTableError: If the table is structurally invalid
        """
        name = _string(data, "name", "capability table")

        raw_capabilities = _require(data, "capabilities", f"table '{name}'")
        if not isinstance(raw_capabilities, list):
            raise CapabilityTableError(f"Field 'capabilities' in table '{name}' must be a list")
        capabilities = tuple(CapabilityDefinition.from_dict(entry, i) for i, entry in enumerate(raw_capabilities))

        static_definitions = data.get("static_definitions", {})
        if not isinstance(static_definitions, dict):
            raise CapabilityTableError(f"Field 'static_definitions' in table '{name}' must be an object")
        for def_name, value in static_definitions.items():
            if type(value) is not int or value not in (0, 1):
                raise CapabilityTableError(f"Static definition {def_name} must be 0 or 1, got {value!r}")

        raw_settings = data.get("platform_settings", {})
        if not isinstance(raw_settings, dict):
            raise CapabilityTableError(f"Field 'platform_settings' in table '{name}' must be an object")
        platform_settings = {}
        for platform_name, settings in raw_settings.items():
            (platform,) = _platform_list([platform_name], f"table '{name}' platform_settings")
            platform_settings[platform] = PlatformSettings.from_dict(settings, f"platform_settings.{platform_name}")

        cls._validate_capabilities(capabilities, static_definitions)

        return cls(
            name=name,
            description=data.get("description", ""),
            static_definitions=dict(static_definitions),
            platform_settings=platform_settings,
            capabilities=capabilities,
        )

    @staticmethod
    def _validate_capabilities(capabilities: Tuple[CapabilityDefinition, ...], static_definitions: Dict[str, int]) -> None:
        seen_ids: set[str] = set()
        seen_definitions: set[str] = set(static_definitions)

        for capability in capabilities:
            if capability.id in seen_ids:
                raise CapabilityTableError(f"Duplicate capability id: {capability.id}")
            if capability.definition in seen_definitions:
                raise CapabilityTableError(f"Definition {capability.definition} is emitted more than once")
            # Requirements resolve in table order, so they must point backwards
            for required in capability.requires:
                if required not in seen_ids:
                    raise CapabilityTableError(f"Capability '{capability.id}' requires '{required}', which is not defined before it")
            seen_ids.add(capability.id)
            seen_definitions.add(capability.definition)

    def get(self, capability_id: str) -> CapabilityDefinition:
        for capability in self.capabilities:
            if capability.id == capability_id:
                return capability
        raise KeyError(capability_id)

    def settings_for(self, platform: PlatformId) -> PlatformSettings:
        return self.platform_settings.get(platform, PlatformSettings())
