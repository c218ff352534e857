"""Resolve pass - Scanner -> Prober -> Assembler -> Stager.

This module defines:
- ResolveParams: Inputs of one resolve pass (directories, platform, table)
- ResolveResult: Everything the pass produced
- resolve(): Runs the four phases and reports diagnostics

Design:
    Data flows strictly forward and every phase returns a fresh value; there
    is no module-level state, so repeated resolves (watch-mode builds) are
    independent. Only caller mistakes (bad platform, bad table, missing
    plugin directory) raise; unavailable capabilities and staging failures
    end up in the result.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from . import __version__
from .assembler import ConfigurationAssembler
from .capability_model import CapabilityDefinition, CapabilityTable, PathContext
from .errors import ResolveError
from .models import ProbeResult, ResolvedConfig, StageOutcome, StageStatus
from .output import TimedLogger, log, log_capability, log_detail, log_header, log_warning
from .platforms import PlatformId
from .prober import probe
from .scanner import module_names, scan_modules
from .stager import ensure_directory, stage

logger = logging.getLogger(__name__)

TOTAL_PHASES = 4


@dataclass(frozen=True)
class ResolveParams:
    """Inputs of one resolve pass.

    Attributes:
        table: Validated capability table
        platform: Target platform (a PlatformId or its name)
        plugin_dir: Plugin root directory
        thirdparty_dir: Engine third-party source directory; None or missing means no SDKs
        project_dir: Project directory, used for output directories the linker expects
        stage: Whether to perform staging side effects
    """

    table: CapabilityTable
    platform: Union[PlatformId, str]
    plugin_dir: Path
    thirdparty_dir: Optional[Path] = None
    project_dir: Optional[Path] = None
    stage: bool = True


@dataclass(frozen=True)
class ResolveResult:
    """Everything one resolve pass produced."""

    config: ResolvedConfig
    probe_results: tuple[ProbeResult, ...]
    platform: PlatformId
    stage_outcomes: tuple[StageOutcome, ...] = field(default_factory=tuple)

    @property
    def staging_failures(self) -> list[StageOutcome]:
        return [o for o in self.stage_outcomes if o.status is StageStatus.FAILED]

    def result_for(self, capability_id: str) -> ProbeResult:
        for result in self.probe_results:
            if result.capability_id == capability_id:
                return result
        raise KeyError(capability_id)


def _validate(params: ResolveParams) -> PlatformId:
    if not isinstance(params.table, CapabilityTable):
        raise ResolveError(f"Expected a CapabilityTable, got {type(params.table).__name__}")
    if params.plugin_dir is None or str(params.plugin_dir) == "":
        raise ResolveError("A plugin directory is required")
    if isinstance(params.platform, PlatformId):
        return params.platform
    return PlatformId.from_string(params.platform)


def _scan_phase(table: CapabilityTable, platform: PlatformId, thirdparty_dir: Optional[Path]) -> Dict[str, tuple[tuple[str, ...], tuple[str, ...]]]:
    """Discover modules for every module-scanned capability that applies to ``platform``.

    Returns:
        capability id -> (discovered module names, companion module names)
    """
    discovered: Dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {}
    with TimedLogger("Scanning third-party modules", phase=(1, TOTAL_PHASES)) as timed:
        if thirdparty_dir is None or not thirdparty_dir.is_dir():
            timed.detail(f"No third-party directory{f' at {thirdparty_dir}' if thirdparty_dir else ''} - no SDK modules available")

        for capability in table.capabilities:
            if capability.module_scan is None or not capability.applies_to(platform):
                continue
            spec = capability.module_scan
            modules = module_names(scan_modules(thirdparty_dir, spec.prefixes))
            companions = module_names(scan_modules(thirdparty_dir, spec.companion_prefixes)) if modules else ()
            discovered[capability.id] = (modules, companions)
            if modules:
                timed.detail(f"{capability.label}: {', '.join(modules + companions)}")
    return discovered


def _probe_capability(capability: CapabilityDefinition, context: PathContext, discovered, enabled_ids: set[str]) -> ProbeResult:
    if not capability.applies_to(context.platform):
        supported = ", ".join(p.value for p in capability.platforms)
        return ProbeResult.skipped(capability.id, f"only available on {supported}")

    blocked = [r for r in capability.requires if r not in enabled_ids]
    if blocked:
        return ProbeResult(
            capability_id=capability.id,
            enabled=False,
            missing=tuple(f"Requires capability '{r}' to be enabled" for r in blocked),
        )

    modules, companions = discovered.get(capability.id, ((), ()))
    result = probe(capability.to_probe(context, modules))
    if result.enabled and companions:
        result = dataclasses.replace(result, companion_modules=companions)
    return result


def _report_libraries(capability: CapabilityDefinition, result: ProbeResult) -> None:
    if not result.enabled or not result.missing_libraries:
        return
    if not result.libraries:
        log(f"{capability.label} import libraries not found - relying on runtime exports only.")
        return
    for name in result.missing_libraries:
        log_detail(f"{capability.label}: optional library {name} not found", verbose_only=True)


def _stage_phase(config: ResolvedConfig) -> List[StageOutcome]:
    outcomes: List[StageOutcome] = []
    with TimedLogger("Staging runtime libraries", phase=(4, TOTAL_PHASES)) as timed:
        for directory in config.ensure_directories:
            outcomes.append(ensure_directory(directory))
        for task in config.staging_tasks:
            for outcome in stage(task):
                outcomes.append(outcome)
                if outcome.status is StageStatus.COPIED:
                    timed.detail(f"{task.source_artifact.name} -> {outcome.destination}")
                elif outcome.status is StageStatus.FAILED:
                    log_warning(f"Could not stage {task.source_artifact.name} into {outcome.destination}: {outcome.error}")
    return outcomes


def resolve(params: ResolveParams) -> ResolveResult:
    """
    Run one resolve pass.

    Args:
        params: Resolve inputs

    Returns:
        ResolveResult with the resolved configuration, per-capability verdicts
        and staging outcomes

    Raises:
        ResolveError: If the platform, table or plugin directory is invalid
    """
    platform = _validate(params)
    table = params.table
    context = PathContext(
        plugin_dir=Path(params.plugin_dir),
        thirdparty_dir=Path(params.thirdparty_dir) if params.thirdparty_dir else None,
        project_dir=Path(params.project_dir) if params.project_dir else None,
        platform=platform,
    )

    log_header("omniresolve", __version__, f"table: {table.name}, platform: {platform}")
    logger.debug(f"Resolve context: {context}")

    discovered = _scan_phase(table, platform, context.thirdparty_dir)

    results: List[ProbeResult] = []
    enabled_ids: set[str] = set()
    with TimedLogger("Probing capabilities", phase=(2, TOTAL_PHASES)):
        for capability in table.capabilities:
            result = _probe_capability(capability, context, discovered, enabled_ids)
            if result.enabled:
                enabled_ids.add(capability.id)
            results.append(result)
            log_capability(capability.label, result.enabled, result.missing, result.skipped_reason)
            _report_libraries(capability, result)

    with TimedLogger("Assembling configuration", phase=(3, TOTAL_PHASES)) as timed:
        config = ConfigurationAssembler(table, context).assemble(results, platform)
        for definition in config.definition_strings():
            timed.detail(definition)

    outcomes: List[StageOutcome] = []
    if params.stage:
        outcomes = _stage_phase(config)

    return ResolveResult(
        config=config,
        probe_results=tuple(results),
        platform=platform,
        stage_outcomes=tuple(outcomes),
    )
