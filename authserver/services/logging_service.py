"""structlog setup for the authorization server.

Log entries pass through :func:`redact_sensitive` before rendering, so
credentials, raw token values and full e-mail addresses never reach the
output even when a call site passes them as keyword arguments.
"""

import logging
import sys
from typing import Any, Dict

import structlog

SENSITIVE_SUBSTRINGS = ("password", "secret", "authorization")


def mask_email(value: str) -> str:
    """Keep the first character of the local part and the domain."""
    local, sep, domain = value.partition("@")
    if not sep or not local:
        return "REDACTED"
    return f"{local[0]}***@{domain}"


def _is_token_value(key: str) -> bool:
    # token_id, token_type and friends are identifiers, not secrets
    return key == "token" or key.endswith("_token")


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Redact credentials, token values and e-mail addresses.

    - any key containing 'password', 'secret' or 'authorization'
    - 'token' and '*_token' keys
    - 'email' and '*_email' keys are masked, not dropped
    """
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_SUBSTRINGS):
            event_dict[key] = "REDACTED"
        elif _is_token_value(key_lower):
            event_dict[key] = "REDACTED"
        elif key_lower == "email" or key_lower.endswith("_email"):
            value = event_dict[key]
            event_dict[key] = mask_email(value) if isinstance(value, str) else "REDACTED"

    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON lines when True, coloured console output otherwise
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
