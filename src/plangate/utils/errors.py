"""Custom exception classes for plangate."""

from typing import Optional


class PlanGateError(Exception):
    """Base exception for all plangate errors."""
    pass


class ConfigError(PlanGateError):
    """Raised when resource configuration or settings are invalid.

    Covers unresolved references, duplicate addresses and dependency cycles.
    Never retried automatically.
    """
    pass


class ConflictError(PlanGateError):
    """Raised when a state write loses a compare-and-swap on the version token."""

    def __init__(self, address: str, expected_version: int, actual_version: int):
        self.address = address
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"State conflict on {address}: expected version {expected_version}, "
            f"found {actual_version}"
        )


class LockBusyError(PlanGateError):
    """Raised when the namespace advisory lock cannot be acquired in time."""

    def __init__(self, namespace: str, holder: Optional[str] = None):
        self.namespace = namespace
        self.holder = holder
        message = f"State namespace '{namespace}' is locked"
        if holder:
            message += f" by {holder}"
        super().__init__(message)


class ProviderError(PlanGateError):
    """Raised when a provider adapter fails to apply or destroy a resource."""

    def __init__(self, message: str, address: Optional[str] = None, action: Optional[str] = None):
        self.address = address
        self.action = action
        self.detail = message
        if address and action:
            message = f"{action} {address} failed: {message}"
        super().__init__(message)


class ApprovalError(PlanGateError):
    """Raised when an approval decision cannot be recorded."""
    pass


class ApprovalNotGrantedError(PlanGateError):
    """Raised when apply is attempted on a plan that is not approved."""
    pass


class StalePlanError(PlanGateError):
    """Raised when state changed since planning and the policy forbids re-diffing."""
    pass


class PlanNotFoundError(PlanGateError):
    """Raised when a plan handle does not exist in the workspace."""
    pass
