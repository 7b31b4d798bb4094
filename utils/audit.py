"""
utils/audit.py
--------------
Audit trail for administrative state changes.
Each event is one `key=value` line on the dedicated ``audit`` logger,
so it can be routed to its own handler without touching callers.
"""

from utils.logger import get_logger

AUDIT_LOGGER_NAME = "audit"

_audit = get_logger(AUDIT_LOGGER_NAME)


def audit_event(action: str, **fields) -> str:
    """
    Emit an audit event.

    Args:
        action: Dotted event name, e.g. ``card.status_changed``.
        **fields: Event attributes; ``None`` values are written as ``-``.

    Returns:
        The formatted line (handy for tests and for callers that also
        want to surface it).
    """
    parts = [f"action={action}"]
    for key in sorted(fields):
        value = fields[key]
        parts.append(f"{key}={'-' if value is None else value}")
    line = " ".join(parts)
    _audit.info(line)
    return line
