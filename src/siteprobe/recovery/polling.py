"""
Bounded polling for submit-then-poll collaborators.

``poll_until`` calls a status check repeatedly until it reports completion,
the wall-clock budget runs out, or too many checks in a row fail. Exhaustion
is returned as a value carrying whatever partial data was seen, never raised.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union

import structlog

from .result import Err, Ok, Result

logger = structlog.get_logger(__name__)

T = TypeVar("T")


# --- Steps reported by the status check ---


@dataclass(frozen=True)
class Done(Generic[T]):
    value: T


@dataclass(frozen=True)
class Pending(Generic[T]):
    partial: Optional[T] = None


@dataclass(frozen=True)
class Abort(Generic[T]):
    reason: str
    partial: Optional[T] = None


PollStep = Union[Done[T], Pending[T], Abort[T]]


# --- Exhaustion variants ---


@dataclass(frozen=True)
class TimedOut(Generic[T]):
    elapsed: float
    attempts: int
    partial: Optional[T] = None
    last_error: Optional[str] = None


@dataclass(frozen=True)
class TooManyErrors(Generic[T]):
    consecutive_errors: int
    last_error: str
    partial: Optional[T] = None


@dataclass(frozen=True)
class Aborted(Generic[T]):
    reason: str
    partial: Optional[T] = None


PollFailure = Union[TimedOut[T], TooManyErrors[T], Aborted[T]]


async def poll_until(
    check: Callable[[], Awaitable[PollStep[T]]],
    *,
    interval: float,
    hard_deadline: float,
    max_consecutive_errors: int,
    error_backoff: float = 0.0,
) -> Result[T, PollFailure[T]]:
    """
    Poll ``check`` until it returns ``Done``.

    Args:
        check: coroutine factory returning ``Done``, ``Pending`` or ``Abort``
        interval: seconds between polls (the first poll is immediate)
        hard_deadline: wall-clock budget in seconds, measured from the call
        max_consecutive_errors: raised checks tolerated in a row
        error_backoff: extra seconds to wait after a raised check

    Returns:
        ``Ok(value)`` or ``Err(TimedOut | TooManyErrors | Aborted)``.
    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + hard_deadline

    attempts = 0
    consecutive_errors = 0
    last_error: Optional[str] = None
    partial: Optional[T] = None

    def timed_out() -> Err[TimedOut[T]]:
        elapsed = loop.time() - started
        logger.warning("Polling deadline exceeded", elapsed=round(elapsed, 3), attempts=attempts)
        return Err(TimedOut(elapsed=elapsed, attempts=attempts, partial=partial, last_error=last_error))

    while True:
        if attempts:
            delay = interval + (error_backoff if consecutive_errors else 0.0)
            remaining = deadline - loop.time()
            if remaining <= 0:
                return timed_out()
            await asyncio.sleep(min(delay, remaining))

        if loop.time() >= deadline:
            return timed_out()

        attempts += 1
        try:
            async with asyncio.timeout_at(deadline):
                step = await check()
        except TimeoutError as e:
            if loop.time() >= deadline:
                return timed_out()
            step = None
            error = e
        except Exception as e:
            step = None
            error = e

        if step is None:
            consecutive_errors += 1
            last_error = str(error) or type(error).__name__
            logger.warning(
                "Poll attempt failed",
                attempt=attempts,
                consecutive_errors=consecutive_errors,
                max_consecutive_errors=max_consecutive_errors,
                error=last_error,
            )
            if consecutive_errors >= max_consecutive_errors:
                return Err(TooManyErrors(consecutive_errors=consecutive_errors, last_error=last_error, partial=partial))
            continue

        consecutive_errors = 0

        if isinstance(step, Done):
            logger.debug("Polling completed", attempts=attempts)
            return Ok(step.value)

        if isinstance(step, Abort):
            logger.warning("Polling aborted by status check", reason=step.reason, attempts=attempts)
            return Err(Aborted(reason=step.reason, partial=step.partial if step.partial is not None else partial))

        if step.partial is not None:
            partial = step.partial
