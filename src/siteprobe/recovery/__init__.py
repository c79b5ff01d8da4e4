"""Failure-tolerant concurrency: tagged results, settle-all and bounded polling."""

from .polling import Abort, Aborted, Done, Pending, PollFailure, PollStep, TimedOut, TooManyErrors, poll_until
from .result import Err, Ok, Result
from .settle import settle_all

__all__ = [
    "Abort",
    "Aborted",
    "Done",
    "Err",
    "Ok",
    "Pending",
    "PollFailure",
    "PollStep",
    "Result",
    "TimedOut",
    "TooManyErrors",
    "poll_until",
    "settle_all",
]
