import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from .errors import ModelParseError, ModelRequestError, SchemaValidationError, VisionEmptyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    retry_on: Callable[[BaseException], bool]


def is_transient_ocr_failure(exc: BaseException) -> bool:
    if isinstance(exc, VisionEmptyError):
        return True
    if isinstance(exc, ModelRequestError) and exc.status is not None:
        return exc.status >= 500 or exc.status == 429
    return False


def is_malformed_output(exc: BaseException) -> bool:
    return isinstance(exc, (ModelParseError, SchemaValidationError))


def _log_retry(label: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def log(retry_state: RetryCallState) -> None:
        logger.warning("%s attempt %d/%d failed, retrying: %s", label, retry_state.attempt_number,
                       max_attempts, retry_state.outcome.exception())
    return log


def run_with_retry(operation: Callable[[int], T], policy: RetryPolicy, *, label: str) -> T:
    """Call ``operation(attempt)`` until it succeeds or the policy gives up.

    Retries are immediate. A non-retriable error, or the error from the last
    allowed attempt, propagates unchanged.
    """
    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        retry=retry_if_exception(policy.retry_on),
        before_sleep=_log_retry(label, policy.max_attempts),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            result = operation(attempt.retry_state.attempt_number)
    return result
