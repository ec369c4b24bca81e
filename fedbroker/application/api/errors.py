"""Centralized error transformation for API routes.

Maps broker errors (domain and infrastructure) to HTTPException responses.
"""

from typing import Any

from fastapi import HTTPException

from fedbroker.domain.auth.error import GENERIC_UPSTREAM_MESSAGE
from fedbroker.domain.shared.error import (
    BrokerError,
    ConflictError,
    DomainError,
    InfrastructureError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

DOMAIN_ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    InvalidStateError: 409,
    ConflictError: 409,
}


def _domain_status(error: DomainError) -> int:
    for error_type, status_code in DOMAIN_ERROR_STATUS_MAP.items():
        if isinstance(error, error_type):
            return status_code
    return 400


def map_broker_error(error: BrokerError) -> HTTPException:
    """Map a broker error to an HTTPException.

    Upstream failures never expose their message; the detail stays in the log.
    """
    if isinstance(error, InfrastructureError):
        detail: dict[str, Any] = {"code": error.code, "message": GENERIC_UPSTREAM_MESSAGE}
        return HTTPException(status_code=500, detail=detail)

    detail = {"code": error.code, "message": error.message}
    if isinstance(error, DomainError):
        return HTTPException(status_code=_domain_status(error), detail=detail)

    # Fallback for unknown BrokerError subclasses
    return HTTPException(status_code=500, detail=detail)
