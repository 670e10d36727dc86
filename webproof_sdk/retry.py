"""
Retry-with-backoff shared by the retried phases of an attestation task.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from .exceptions import PhaseTimeoutError, RetryExhaustedError, ValidationError

T = TypeVar('T')


def exponential_backoff(base_delay: float, attempt: int) -> float:
    """Delay before retry number ``attempt`` (1-based): base * 2^(attempt-1)"""
    return base_delay * (2 ** (attempt - 1))


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry budget for one phase.

    Attributes:
        max_retries: Retries allowed after the first attempt
        base_delay: Delay before the first retry, in seconds
        backoff: Function of (base_delay, attempt) giving the delay before a retry
    """
    max_retries: int
    base_delay: float = 1.0
    backoff: Callable[[float, int], float] = exponential_backoff

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        return self.backoff(self.base_delay, attempt)


def retry_with_backoff(
    fn: Callable[[], T],
    policy: RetryPolicy,
    *,
    phase: str,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    no_retry: Tuple[Type[BaseException], ...] = (ValidationError,),
    sleep: Optional[Callable[[float], None]] = None,
    logger: Optional[logging.Logger] = None,
) -> T:
    """
    Call ``fn`` until it succeeds or the policy's retry budget is spent.

    Args:
        fn: Zero-argument callable performing one attempt
        policy: Retry budget and backoff for this phase
        phase: Phase name used in log lines and errors
        retry_on: Exception types treated as transient
        no_retry: Exception types re-raised immediately, even if in retry_on
        sleep: Sleep function (defaults to time.sleep, looked up per call)
        logger: Logger for progress reporting

    Returns:
        The first successful result of ``fn``

    Raises:
        RetryExhaustedError: If every attempt failed with a transient error
    """
    log = logger or logging.getLogger(__name__)
    sleeper = sleep if sleep is not None else time.sleep
    attempt = 0
    started = time.monotonic()

    while True:
        try:
            result = fn()
            log.debug(f"{phase} done ({(time.monotonic() - started) * 1000:.0f}ms)")
            return result
        except no_retry:
            raise
        except retry_on as e:
            attempt += 1
            log.warning(f"{phase} attempt {attempt}/{policy.max_attempts} failed: {e}")
            if attempt > policy.max_retries:
                log.error(f"{phase} failed after {policy.max_retries} retries")
                raise RetryExhaustedError(phase, attempt, e) from e
            delay = policy.delay_for(attempt)
            log.info(f"Retrying {phase} in {delay:.2f}s")
            sleeper(delay)


def call_with_deadline(fn: Callable[[], T], deadline: Optional[float]) -> T:
    """
    Run ``fn`` with a hard per-call deadline in seconds.

    With no deadline the call runs inline. A call that overruns is abandoned
    (its worker thread is not joined) and PhaseTimeoutError is raised.
    """
    if deadline is None:
        return fn()

    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(fn)
        try:
            return future.result(timeout=deadline)
        except FuturesTimeoutError:
            future.cancel()
            raise PhaseTimeoutError(f"Call exceeded deadline of {deadline}s")
    finally:
        executor.shutdown(wait=False)
