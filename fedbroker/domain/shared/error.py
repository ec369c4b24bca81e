"""Error hierarchy for the broker.

Error layers:
- BrokerError: Base class for all broker errors
- DomainError: Client-originated rejections (4xx responses)
- InfrastructureError: Upstream or system failures (5xx responses)

Errors are mapped to HTTP responses by the global exception handler in app.py.
"""


class BrokerError(Exception):
    """Base class for all broker errors."""

    default_code: str | None = None

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (client-originated - typically 4xx)
# =============================================================================


class DomainError(BrokerError):
    """Base class for domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Request input failed validation."""


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class ConflictError(DomainError):
    """Resource already exists."""


# =============================================================================
# Infrastructure Errors (upstream/system failures - typically 5xx)
# =============================================================================


class InfrastructureError(BrokerError):
    """Base class for infrastructure errors."""


class ExternalServiceError(InfrastructureError):
    """An upstream service (identity provider, signing backend) failed."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
