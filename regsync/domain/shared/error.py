"""Error hierarchy for regsync.

Error layers:
- RegSyncError: Base class for all regsync errors
- DomainError: Malformed input or illegal state (addresses, references, lifecycle)
- InfrastructureError: Failures talking to registries, containers or the copy tool

The CLI maps every RegSyncError to a non-zero exit status.
"""


class RegSyncError(Exception):
    """Base class for all regsync errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (bad input or misuse)
# =============================================================================


class DomainError(RegSyncError):
    """Base class for domain errors."""


class InvalidAddressError(DomainError):
    """Host/port splitting failed for a registry address."""

    def __init__(self, message: str, address: str | None = None) -> None:
        super().__init__(message, code="INVALID_ADDRESS")
        self.address = address


class InvalidReferenceError(DomainError):
    """A string could not be turned into the requested image reference."""

    def __init__(self, message: str, reference: str | None = None) -> None:
        super().__init__(message, code="INVALID_REFERENCE")
        self.reference = reference


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


# =============================================================================
# Infrastructure Errors (network, container and subprocess failures)
# =============================================================================


class InfrastructureError(RegSyncError):
    """Base class for infrastructure/system errors."""


class PolicyInitError(InfrastructureError):
    """The signature verification policy could not be constructed."""


class LoginError(InfrastructureError):
    """Authentication against a destination registry failed."""

    def __init__(self, message: str, registry: str | None = None) -> None:
        super().__init__(message, code="LOGIN_FAILED")
        self.registry = registry


class BindError(InfrastructureError):
    """A local registry service could not start listening."""


class ServeError(InfrastructureError):
    """A local registry service stopped serving unexpectedly."""


class DiscoveryError(InfrastructureError):
    """Listing repositories or tags on a source registry failed."""


class TransferError(InfrastructureError):
    """Copying an image to a destination registry failed."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        destination: str | None = None,
    ) -> None:
        super().__init__(message, code="TRANSFER_FAILED")
        self.source = source
        self.destination = destination
