"""Fixed-interval retry for calls that fail transiently."""

import time
from typing import Callable, Optional, Tuple, Type, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


def retry_every(
    interval: float,
    fn: Callable[[], T],
    max_attempts: Optional[int] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> T:
    """
    Call ``fn`` until it returns, sleeping ``interval`` seconds after each
    failure.

    With ``max_attempts`` of None the loop never gives up. Otherwise the
    last exception is re-raised once ``max_attempts`` calls have failed.
    Exceptions outside ``retry_on`` propagate immediately.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn()
        except retry_on as e:
            if max_attempts is not None and attempt >= max_attempts:
                log.error("retry_exhausted", attempts=attempt, error=str(e))
                raise
            log.warning(
                "retry_after_failure",
                attempt=attempt,
                interval=interval,
                error=str(e),
                error_type=type(e).__name__,
            )
            time.sleep(interval)
