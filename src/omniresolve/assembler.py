"""Configuration Assembler.

Turns probe results into the ResolvedConfig handed to the build graph.

Design:
    The assembler is a pure function of (table, path context, probe results,
    platform). It never touches the filesystem, so the same inputs always give
    the same ResolvedConfig and builds stay reproducible.

    - Every capability emits its definition, 1 if enabled else 0. Disabled and
      platform-gated capabilities are still emitted so code can test the flag.
    - Enabled capabilities contribute dependencies, include paths, libraries,
      runtime dependencies and staging tasks in table order. Entries already
      contributed are not repeated, and later capabilities never reorder
      earlier ones. Paths that need a directory the caller did not supply
      are dropped.
    - Table-level static definitions and per-platform settings are applied
      regardless of capability state.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple, TypeVar

from .capability_model import CapabilityTable, PathContext
from .errors import ResolveError
from .models import ProbeResult, ResolvedConfig, StagingTask
from .platforms import PlatformId

T = TypeVar("T")


def _extend_unique(target: List[T], items: Iterable[T]) -> None:
    for item in items:
        if item not in target:
            target.append(item)


class ConfigurationAssembler:
    """Builds a ResolvedConfig from probe results for one capability table."""

    def __init__(self, table: CapabilityTable, context: PathContext):
        """Initialize the assembler.

        Args:
            table: Validated capability table
            context: Directories used to expand path templates
        """
        self.table = table
        self.context = context

    def _expand_all(self, templates: Iterable[str]) -> Tuple[Path, ...]:
        # Templates naming a directory the caller did not supply are dropped
        expanded = (self.context.try_expand(t) for t in templates)
        return tuple(p for p in expanded if p is not None)

    def _index_results(self, results: Sequence[ProbeResult]) -> Dict[str, ProbeResult]:
        by_id: Dict[str, ProbeResult] = {}
        known = {c.id for c in self.table.capabilities}
        for result in results:
            if result.capability_id not in known:
                raise ResolveError(f"Probe result for unknown capability: {result.capability_id}")
            if result.capability_id in by_id:
                raise ResolveError(f"Duplicate probe result for capability: {result.capability_id}")
            by_id[result.capability_id] = result
        return by_id

    def assemble(self, results: Sequence[ProbeResult], platform: PlatformId) -> ResolvedConfig:
        """
        Assemble the resolved configuration.

        Args:
            results: One probe result per probed capability. Capabilities
                without a result count as disabled.
            platform: Target platform

        Returns:
            Fully populated ResolvedConfig

        Raises:
            ResolveError: If results do not match the table or the platform
                disagrees with the path context
        """
        if platform is not self.context.platform:
            raise ResolveError(f"Platform {platform} does not match resolve context platform {self.context.platform}")

        by_id = self._index_results(results)

        enabled: List[str] = []
        definitions: Dict[str, int] = dict(self.table.static_definitions)
        dependencies: List[str] = []
        include_paths: List = []
        libraries: List = []
        runtime_dependencies: List[str] = []
        delay_load: List[str] = []
        staging_tasks: List[StagingTask] = []

        for capability in self.table.capabilities:
            result = by_id.get(capability.id)
            is_enabled = result is not None and result.enabled
            definitions[capability.definition] = 1 if is_enabled else 0
            if not is_enabled:
                continue

            enabled.append(capability.id)
            _extend_unique(dependencies, capability.dependencies)
            _extend_unique(dependencies, result.discovered_modules)
            _extend_unique(dependencies, result.companion_modules)
            _extend_unique(include_paths, self._expand_all(capability.include_paths))
            _extend_unique(libraries, result.libraries)
            _extend_unique(runtime_dependencies, capability.runtime_dependencies)
            _extend_unique(delay_load, capability.delay_load)
            for spec in capability.staging:
                source = self.context.try_expand(spec.source)
                destinations = self._expand_all(spec.destinations)
                if source is None or not destinations:
                    continue
                _extend_unique(staging_tasks, [StagingTask(source_artifact=source, destination_directories=destinations)])

        settings = self.table.settings_for(platform)
        _extend_unique(dependencies, settings.dependencies)
        system_libraries: List[str] = []
        _extend_unique(system_libraries, settings.system_libraries)
        ensure_directories: List = []
        _extend_unique(ensure_directories, self._expand_all(settings.ensure_directories))

        return ResolvedConfig(
            enabled_capabilities=frozenset(enabled),
            definitions=definitions,
            extra_dependencies=tuple(dependencies),
            extra_include_paths=tuple(include_paths),
            extra_libraries=tuple(libraries),
            runtime_dependencies=tuple(runtime_dependencies),
            delay_load_libraries=tuple(delay_load),
            system_libraries=tuple(system_libraries),
            staging_tasks=tuple(staging_tasks),
            ensure_directories=tuple(ensure_directories),
        )


def assemble(table: CapabilityTable, context: PathContext, results: Sequence[ProbeResult]) -> ResolvedConfig:
    """Convenience wrapper: assemble for the context's platform."""
    return ConfigurationAssembler(table, context).assemble(results, context.platform)
