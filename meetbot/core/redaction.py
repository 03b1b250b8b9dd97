"""
PII redaction for log output.

Installed once at startup as a logging.Filter on the root handlers.
The dialogue engine logs sanitized text and relies on this filter to mask
personal data before a record is emitted.
"""

import logging
import re

_EMAIL = re.compile(r"([a-zA-Z0-9])[a-zA-Z0-9._%+-]*@([a-zA-Z0-9])[a-zA-Z0-9.-]*\.[a-zA-Z]{2,}")
_CARD = re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b")
_SSN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
_PHONE = re.compile(r"\(?\b\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b")
_BEARER = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9\-._~+/]+=*")


def redact(text: str) -> str:
    """Mask emails, card numbers, SSNs, phone numbers and bearer tokens."""
    if not text:
        return text
    text = _BEARER.sub("Bearer [REDACTED]", text)
    text = _EMAIL.sub(r"\1***@\2***.[REDACTED]", text)
    text = _CARD.sub("**** **** **** ****", text)
    text = _SSN.sub("***-**-****", text)
    text = _PHONE.sub("(***)***-****", text)
    return text


def mask_token(token: str) -> str:
    """Show only the edges of a secret."""
    if not token or len(token) < 24:
        return "[REDACTED]"
    return f"{token[:10]}...{token[-10:]}"


class PIIRedactionFilter(logging.Filter):
    """Rewrites each record's message with PII masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        record.msg = redact(message)
        record.args = None
        return True


def install_redaction(logger: logging.Logger = None) -> PIIRedactionFilter:
    """Attach the filter to every handler of the given (default: root) logger."""
    target = logger or logging.getLogger()
    pii_filter = PIIRedactionFilter()
    for handler in target.handlers:
        if not any(isinstance(f, PIIRedactionFilter) for f in handler.filters):
            handler.addFilter(pii_filter)
    return pii_filter
