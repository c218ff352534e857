"""Exception hierarchy for omniresolve.

Only caller mistakes are raised. Missing SDK artifacts and staging I/O failures
are expected conditions and travel as result values instead.
"""


class ResolveError(Exception):
    """Base class for fatal resolve failures caused by malformed caller input."""

    pass


class UnknownPlatformError(ResolveError, ValueError):
    """Raised when a platform identifier cannot be parsed."""

    pass


class CapabilityTableError(ResolveError, ValueError):
    """Raised when a capability table is structurally invalid."""

    pass
