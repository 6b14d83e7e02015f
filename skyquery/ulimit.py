"""Raise the open-files limit (RLIMIT_NOFILE) of the running process."""

from __future__ import annotations

import logging
import resource

from .logsetup import FIELDS_ATTR

ULIMIT_UNIX = 16384

logger = logging.getLogger(__name__)


def _numeric(value: int) -> float:
    return float("inf") if value == resource.RLIM_INFINITY else value


def get_ulimit() -> tuple[int, int]:
    """Return the ``(soft, hard)`` open-files limit."""
    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    return soft, hard


def _set_hard_ulimit() -> None:
    soft, hard = get_ulimit()
    if _numeric(hard) < ULIMIT_UNIX:
        logger.info(
            "adjusting hard ulimit",
            extra={FIELDS_ATTR: {"previous_ulimit": hard, "new_ulimit": ULIMIT_UNIX}},
        )
        resource.setrlimit(resource.RLIMIT_NOFILE, (soft, ULIMIT_UNIX))


def _set_soft_ulimit() -> None:
    soft, hard = get_ulimit()
    desired = int(min(_numeric(hard), ULIMIT_UNIX))
    if _numeric(soft) < desired:
        logger.info(
            "adjusting soft ulimit",
            extra={FIELDS_ATTR: {"previous_ulimit": soft, "new_ulimit": desired}},
        )
        resource.setrlimit(resource.RLIMIT_NOFILE, (desired, hard))


def set_ulimit() -> None:
    """Try to raise the hard limit, then raise the soft limit as far as allowed.

    Failing to raise the hard limit is only logged; a failure on the soft limit raises.
    """
    try:
        _set_hard_ulimit()
    except (OSError, ValueError) as exc:
        logger.info("failed setting hard ulimit", extra={FIELDS_ATTR: {"err": str(exc)}})
    _set_soft_ulimit()


def check_and_set_ulimit() -> tuple[int, int] | None:
    """Log the limits, adjust them and return them afterwards; ``None`` if unreadable."""
    try:
        soft, hard = get_ulimit()
    except (OSError, ValueError):
        logger.exception("check_and_set_ulimit: failed getting ulimit")
        return None
    logger.info(
        "limits (before adjustment)",
        extra={FIELDS_ATTR: {"hard_ulimit": hard, "soft_ulimit": soft}},
    )

    try:
        set_ulimit()
    except (OSError, ValueError) as exc:
        logger.error("failed setting ulimit", extra={FIELDS_ATTR: {"err": str(exc)}})

    try:
        soft, hard = get_ulimit()
    except (OSError, ValueError):
        logger.exception("check_and_set_ulimit: failed getting ulimit")
        return None
    logger.info(
        "limits (after adjustment)",
        extra={FIELDS_ATTR: {"hard_ulimit": hard, "soft_ulimit": soft}},
    )
    return soft, hard