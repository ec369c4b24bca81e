"""Secret redaction for log output.

Provider error bodies and request traces can echo client secrets, access
tokens, PKCE verifiers and minted credentials. Everything that reaches a log
handler passes through `redact` first.
"""

import logging
import re

MASK = "***"

SECRET_KEYS = (
    "access_token",
    "refresh_token",
    "id_token",
    "client_secret",
    "code_verifier",
    "code",
    "token",
    "firebaseToken",
)

_KEYS = "|".join(re.escape(k) for k in SECRET_KEYS)

# "access_token": "abc"  /  'access_token': 'abc'
_JSON_PAIR = re.compile(rf"""(["']({_KEYS})["']\s*:\s*)(["'])(.*?)(?<!\\)\3""")
# access_token=abc (form bodies, query strings)
_FORM_PAIR = re.compile(rf"(?<![\w-])(({_KEYS})=)([^&\s\"']+)")
# Authorization: Bearer abc / Basic abc
_AUTH_HEADER = re.compile(r"\b(Bearer|Basic)\s+[A-Za-z0-9\-._~+/=]+", re.IGNORECASE)


def redact(text: str) -> str:
    """Mask secret values in `text`, keeping the key names for context."""
    text = _JSON_PAIR.sub(lambda m: f"{m.group(1)}{m.group(3)}{MASK}{m.group(3)}", text)
    text = _FORM_PAIR.sub(lambda m: f"{m.group(1)}{MASK}", text)
    return _AUTH_HEADER.sub(lambda m: f"{m.group(1)} {MASK}", text)


class RedactingFilter(logging.Filter):
    """Logging filter that redacts the formatted message and traceback of each record.

    Never drops a record. A record whose arguments do not fit its format string
    is passed through untouched so the handler reports the formatting error.
    """

    _formatter = logging.Formatter()

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None

        # Formatters reuse a cached exc_text, so redacting it here covers every handler
        if record.exc_info and not record.exc_text:
            record.exc_text = self._formatter.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        if record.stack_info:
            record.stack_info = redact(record.stack_info)
        return True
