"""omniresolve - build-time capability resolver for the OmniCapture plugin.

Public API:
    from omniresolve import ResolveParams, resolve, load_table

    result = resolve(ResolveParams(table=load_table(), platform="Win64", plugin_dir=plugin_root))
    result.config.definitions  # {"WITH_OMNI_NVENC": 1, "WITH_OMNICAPTURE_OPENEXR": 0, ...}
"""

__version__ = "0.3.1"

from omniresolve.capability_tables import load_table, load_table_file  # noqa: E402
from omniresolve.errors import CapabilityTableError, ResolveError, UnknownPlatformError  # noqa: E402
from omniresolve.models import ResolvedConfig, StagingTask, StageOutcome, StageStatus  # noqa: E402
from omniresolve.platforms import PlatformId  # noqa: E402
from omniresolve.resolver import ResolveParams, ResolveResult, resolve  # noqa: E402

__all__ = [
    "CapabilityTableError",
    "PlatformId",
    "ResolveError",
    "ResolveParams",
    "ResolveResult",
    "ResolvedConfig",
    "StageOutcome",
    "StageStatus",
    "StagingTask",
    "UnknownPlatformError",
    "load_table",
    "load_table_file",
    "resolve",
]
