"""Unit tests for secret redaction."""

import logging
import sys

from fedbroker.util.redact import MASK, RedactingFilter, redact


class TestRedact:
    def test_masks_json_values(self):
        text = '{"access_token": "abc123", "token_type": "bearer"}'

        assert redact(text) == f'{{"access_token": "{MASK}", "token_type": "bearer"}}'

    def test_masks_form_values(self):
        text = "grant_type=authorization_code&code=xyz&code_verifier=vvv&client_secret=sss"

        result = redact(text)

        assert "xyz" not in result
        assert "vvv" not in result
        assert "sss" not in result
        assert "grant_type=authorization_code" in result

    def test_masks_deep_link_token(self):
        result = redact("app-scheme://oauth?firebaseToken=eyJhbGci&provider=x")

        assert "eyJhbGci" not in result
        assert "provider=x" in result

    def test_masks_authorization_headers(self):
        assert redact("Authorization: Bearer T1.abc") == f"Authorization: Bearer {MASK}"
        assert redact("Authorization: Basic Y2lkOnNlYw==") == f"Authorization: Basic {MASK}"

    def test_leaves_unrelated_keys(self):
        text = "error_code=invalid_grant&state=abc"

        assert redact(text) == text


class TestRedactingFilter:
    def test_rewrites_formatted_message(self):
        record = logging.LogRecord(
            "fedbroker", logging.ERROR, __file__, 1, "body=%s", ('{"client_secret": "s3"}',), None
        )

        assert RedactingFilter().filter(record)
        assert "s3" not in record.getMessage()
        assert record.args is None

    def test_mismatched_arguments_pass_through(self):
        record = logging.LogRecord(
            "fedbroker", logging.ERROR, __file__, 1, "uid=%s provider=%s", ("x:42",), None
        )

        assert RedactingFilter().filter(record)
        assert record.msg == "uid=%s provider=%s"
        assert record.args == ("x:42",)

    def test_redacts_exception_traceback(self):
        try:
            raise ValueError("token exchange failed: client_secret=s3cr3t&code=abc")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            "fedbroker", logging.ERROR, __file__, 1, "exchange failed", None, exc_info
        )

        assert RedactingFilter().filter(record)
        formatted = logging.Formatter().format(record)
        assert "s3cr3t" not in formatted
        assert "client_secret=***" in formatted
        assert "ValueError" in formatted
