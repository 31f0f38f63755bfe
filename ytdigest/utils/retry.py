"""
Bounded polling for conditions that become true on their own, such as an
external engine's output file appearing on disk.
"""

from typing import Callable, Optional

from retry.api import retry_call

from ytdigest.utils.logger import logging


class NotReadyError(Exception):
    """Raised by a polled condition that does not hold yet."""


def wait_until(
    predicate: Callable[[], bool],
    attempts: int,
    interval: float,
    description: Optional[str] = None,
) -> bool:
    """
    Poll ``predicate`` until it returns True or the attempts run out.

    The predicate is checked once up front and then after each of
    ``attempts`` waits of ``interval`` seconds.

    Args:
        predicate: Condition to check
        attempts: Maximum number of waits
        interval: Seconds between checks
        description: What is being waited for, used in log messages

    Returns:
        True if the condition was met, False if it never was
    """
    what = description or "condition"

    def check():
        if not predicate():
            raise NotReadyError(f"{what} not ready")
        return True

    try:
        return retry_call(
            check,
            exceptions=NotReadyError,
            tries=attempts + 1,
            delay=interval,
            logger=logging if description else None,
        )
    except NotReadyError:
        logging.info(f"Gave up waiting for {what} after {attempts} attempts")
        return False
