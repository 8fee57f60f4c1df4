"""Log filters for identity masking and correlation ID defaults."""

import logging
import re


class IdentityMaskFilter(logging.Filter):
    """Shortens wallet-style identities (0x followed by 40 hex chars) in log messages."""

    ADDRESS_PATTERN = re.compile(r"\b0x([0-9a-fA-F]{4})[0-9a-fA-F]{32}([0-9a-fA-F]{4})\b")

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str) and "0x" in record.msg:
            record.msg = self.ADDRESS_PATTERN.sub(r"0x\1...\2", record.msg)
        if hasattr(record, "caller") and isinstance(record.caller, str):
            record.caller = self.ADDRESS_PATTERN.sub(r"0x\1...\2", record.caller)
        return True


class DefaultCorrelationFilter(logging.Filter):
    """Adds default correlation_id and caller if not present.

    Note: core.correlation.CorrelationFilter fills the real values from the
    current context; this filter only guarantees the format fields exist.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        if not hasattr(record, "caller"):
            record.caller = "-"
        return True
