"""Unit tests for broker error to HTTP mapping."""

import pytest

from fedbroker.application.api.errors import map_broker_error
from fedbroker.domain.auth.error import (
    GENERIC_UPSTREAM_MESSAGE,
    AuthorizationDenied,
    CredentialIssuanceFailed,
    IdentityUpsertFailed,
    InvalidOrExpiredPKCEState,
    MissingCode,
    ProviderProfileFetchFailed,
    ProviderTokenExchangeFailed,
    UnknownProvider,
)


class TestMapBrokerError:
    @pytest.mark.parametrize(
        ("error", "status_code", "code"),
        [
            (MissingCode("no code"), 400, "missing_code"),
            (UnknownProvider("nope"), 404, "unknown_provider"),
            (InvalidOrExpiredPKCEState("stale"), 400, "invalid_pkce_state"),
            (AuthorizationDenied("declined"), 400, "authorization_denied"),
        ],
    )
    def test_client_errors_keep_their_message(self, error, status_code, code):
        http_exc = map_broker_error(error)

        assert http_exc.status_code == status_code
        assert http_exc.detail == {"code": code, "message": error.message}

    @pytest.mark.parametrize(
        "error",
        [
            ProviderTokenExchangeFailed("x token exchange failed: 401"),
            ProviderProfileFetchFailed("x profile fetch failed: 500"),
            IdentityUpsertFailed("Failed to create identity x:42"),
            CredentialIssuanceFailed("Failed to mint credential for x:42"),
        ],
    )
    def test_upstream_errors_are_generic_500s(self, error):
        http_exc = map_broker_error(error)

        assert http_exc.status_code == 500
        assert http_exc.detail["message"] == GENERIC_UPSTREAM_MESSAGE
        assert http_exc.detail["code"] == error.code
