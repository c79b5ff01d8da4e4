"""
Settle-all combinator: await every operation, never short-circuit.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, List, Sequence, TypeVar

from .result import Err, Ok, Result

T = TypeVar("T")


async def settle_all(operations: Sequence[Awaitable[T]]) -> List[Result[T, BaseException]]:
    """
    Run ``operations`` concurrently and wait for all of them.

    The returned list has one entry per operation, in input order: ``Ok`` with
    the value, or ``Err`` with the exception the operation raised. A child
    cancelled on its own settles as ``Err(CancelledError)``; cancelling the
    caller still cancels everything.
    """
    if not operations:
        return []

    outcomes = await asyncio.gather(*operations, return_exceptions=True)

    settled: List[Result[T, BaseException]] = []
    for outcome in outcomes:
        if isinstance(outcome, (Exception, asyncio.CancelledError)):
            settled.append(Err(outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            settled.append(Ok(outcome))
    return settled
