"""
Custom logging filters and configuration.

Provides logging utilities for redacting credentials from third-party
log output and configuring application-wide logging behavior.
"""

from __future__ import annotations

import logging
import re

# Matches API keys passed as query parameters, e.g. "...&key=AIza..."
API_KEY_QUERY_PATTERN = re.compile(r"([?&]key=)[^&\s\"']+", re.IGNORECASE)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def redact_api_keys(text: str) -> str:
    """Replace the value of any ``key=`` query parameter with a placeholder."""
    return API_KEY_QUERY_PATTERN.sub(r"\1[REDACTED]", text)


class ApiKeyRedactionFilter(logging.Filter):
    """Redact API keys from request URLs logged by HTTP clients."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Rewrite the record message with API keys redacted.

        Args:
            record: The log record to filter

        Returns:
            Always True; records are rewritten, never dropped
        """
        message = record.getMessage()
        redacted = redact_api_keys(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logging with API key redaction.

    The filter sits on the root handler so every application logger is
    covered, and on the httpx logger so its records are already redacted
    when they reach any other handler.

    Args:
        level: Root log level
    """
    handler = logging.StreamHandler()
    handler.addFilter(ApiKeyRedactionFilter())
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler],
    )
    logging.getLogger("httpx").addFilter(ApiKeyRedactionFilter())
