"""
trade_breakdown/exceptions.py
-----------------------------
Errors raised by the breakdown pipeline.

``InvalidInputError`` is the only one a caller should expect in normal use.
The ``AllocationError`` family signals a broken ledger invariant; a run that
raises one is aborted and returns nothing.
"""


class BreakdownError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(BreakdownError, ValueError):
    """Client orders, trades or settings are inconsistent."""


class AllocationError(BreakdownError):
    """A ledger mutation would break a conservation invariant."""


class OverAllocationError(AllocationError):
    """A client would hold more than it requested."""


class InvariantViolationError(AllocationError):
    """A trade balance or client holding would go negative, or a frozen ledger was mutated."""


class MissingAllocationError(AllocationError):
    """A client does not hold the trade it is asked to give up."""
