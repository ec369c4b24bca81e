"""Login failure taxonomy.

Client-originated failures are rejected before any upstream call and are never
retried by the broker; the client restarts the flow from ``/auth/{provider}``.
Upstream failures carry a generic message; details go to the log only.
"""

from fedbroker.domain.shared.error import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

GENERIC_UPSTREAM_MESSAGE = "Authentication failed. Please try again."


# Client-originated


class MissingCode(ValidationError):
    """Callback arrived without an authorization code."""

    default_code = "missing_code"


class UnknownProvider(NotFoundError):
    """No configured provider under the requested id."""

    default_code = "unknown_provider"


class InvalidOrExpiredPKCEState(ValidationError):
    """The callback state has no live PKCE session (unknown, reused or expired)."""

    default_code = "invalid_pkce_state"


class AuthorizationDenied(ValidationError):
    """The provider redirected back with an ``error`` instead of a code."""

    default_code = "authorization_denied"


# Upstream


class ProviderTokenExchangeFailed(ExternalServiceError):
    default_code = "token_exchange_failed"


class ProviderProfileFetchFailed(ExternalServiceError):
    default_code = "profile_fetch_failed"


class IdentityUpsertFailed(ExternalServiceError):
    default_code = "identity_upsert_failed"


class CredentialIssuanceFailed(ExternalServiceError):
    default_code = "credential_issuance_failed"


# Backend contract


class IdentityConflict(ConflictError):
    """Raised by a backend's ``create_user`` when the uid already exists."""

    default_code = "identity_exists"
