"""
Thread-safe rate-limited logging.

Keeps repeated network warnings (e.g. an unexpected Content-Type on every
poll) from flooding the log while still surfacing them once per interval.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

# Maximum of 256 distinct messages, each suppressed for up to an hour
_log_cache = TTLCache(maxsize=256, ttl=3600)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    interval: int = 60,
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per ``interval`` seconds.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        interval: Minimum interval between identical messages in seconds
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = f"{level}:{message}"

    with _log_cache_lock:
        now = _log_cache.timer()
        last = _log_cache.get(key)
        if last is not None and now - last < interval:
            return False
        log_method(message)
        _log_cache[key] = now
        return True


def clear_rate_limit_cache() -> None:
    """Forget all suppressed messages."""
    with _log_cache_lock:
        _log_cache.clear()
