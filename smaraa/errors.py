"""
Error taxonomy for the archive core.

Every error carries a ``retryable`` flag so the HTTP surface (and the chat
platform behind it) can tell callers whether re-issuing the same request
can succeed. Duplicate archives are not errors: they are reported as
``ArchiveResult(created=False)``.
"""


class SmaraaError(Exception):
    """Base class for all archive-core errors."""

    retryable: bool = False
    error_type: str = "error"

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        if retryable is not None:
            self.retryable = retryable


class ValidationError(SmaraaError):
    """Malformed or missing request fields. Never retried."""

    error_type = "validation"


class PermissionDenied(SmaraaError):
    """Actor holds none of the roles required for the action."""

    error_type = "permission_denied"

    def __init__(self, tenant_id: str, action: str) -> None:
        super().__init__(f"Actor lacks a role permitted to {action} in tenant {tenant_id}")
        self.tenant_id = tenant_id
        self.action = action


class ProviderUnavailable(SmaraaError):
    """Embedding or generation call failed after retries, or the breaker is open."""

    retryable = True
    error_type = "provider_unavailable"

    def __init__(self, guard: str, message: str) -> None:
        super().__init__(f"{guard} provider unavailable: {message}")
        self.guard = guard


class StoreError(SmaraaError):
    """Backing store failure that survived the operation-level retry budget."""

    error_type = "store"


class RetentionSweepPartialFailure(SmaraaError):
    """One or more tenant sweeps failed while the others completed."""

    error_type = "retention_partial_failure"

    def __init__(self, failed_tenants: list[str]) -> None:
        super().__init__(
            f"Retention sweep failed for {len(failed_tenants)} tenant(s): "
            f"{', '.join(failed_tenants)}"
        )
        self.failed_tenants = failed_tenants
