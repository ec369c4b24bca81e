"""Per-attempt login state machine."""

from dataclasses import dataclass
from enum import StrEnum

from fedbroker.domain.shared.error import InvalidStateError


class LoginStage(StrEnum):
    INIT = "init"
    REDIRECTED = "redirected"
    CODE_RECEIVED = "code_received"
    PKCE_CONSUMED = "pkce_consumed"
    TOKEN_EXCHANGED = "token_exchanged"
    PROFILE_FETCHED = "profile_fetched"
    IDENTITY_RESOLVED = "identity_resolved"
    CREDENTIAL_ISSUED = "credential_issued"
    RESPONDED = "responded"
    FAILED = "failed"


_TRANSITIONS: dict[LoginStage, frozenset[LoginStage]] = {
    LoginStage.INIT: frozenset({LoginStage.REDIRECTED}),
    LoginStage.REDIRECTED: frozenset({LoginStage.CODE_RECEIVED}),
    # PKCE_CONSUMED is skipped by providers that do not use PKCE
    LoginStage.CODE_RECEIVED: frozenset({LoginStage.PKCE_CONSUMED, LoginStage.TOKEN_EXCHANGED}),
    LoginStage.PKCE_CONSUMED: frozenset({LoginStage.TOKEN_EXCHANGED}),
    LoginStage.TOKEN_EXCHANGED: frozenset({LoginStage.PROFILE_FETCHED}),
    LoginStage.PROFILE_FETCHED: frozenset({LoginStage.IDENTITY_RESOLVED}),
    LoginStage.IDENTITY_RESOLVED: frozenset({LoginStage.CREDENTIAL_ISSUED}),
    LoginStage.CREDENTIAL_ISSUED: frozenset({LoginStage.RESPONDED}),
    LoginStage.RESPONDED: frozenset(),
    LoginStage.FAILED: frozenset(),
}

TERMINAL_STAGES = frozenset({LoginStage.RESPONDED, LoginStage.FAILED})


@dataclass
class LoginAttempt:
    """Tracks how far one login got.

    Any step may fail, which moves the attempt to FAILED and records the failure
    kind plus the stage it failed from. Side effects of completed steps (such as
    a consumed PKCE session) are not rolled back.
    """

    provider_id: str
    stage: LoginStage = LoginStage.INIT
    failed_at: LoginStage | None = None
    failure: str | None = None

    def advance(self, to: LoginStage) -> None:
        if to is LoginStage.FAILED:
            raise InvalidStateError("Use fail() to mark an attempt as failed")
        if to not in _TRANSITIONS[self.stage]:
            raise InvalidStateError(
                f"Illegal login transition: {self.stage} -> {to}",
                code="illegal_login_transition",
            )
        self.stage = to

    def fail(self, kind: str) -> None:
        if self.stage in TERMINAL_STAGES:
            raise InvalidStateError(
                f"Login attempt already finished in stage {self.stage}",
                code="illegal_login_transition",
            )
        self.failed_at = self.stage
        self.failure = kind
        self.stage = LoginStage.FAILED

    @property
    def is_finished(self) -> bool:
        return self.stage in TERMINAL_STAGES
