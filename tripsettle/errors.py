"""
Exception types raised by TripSettle.

Most validation failures use the built-in ``ValueError`` / ``LookupError`` /
``PermissionError`` so callers can map them directly to HTTP status codes.
The classes below cover the cases that need to be told apart.
"""


class UnsupportedSplitError(ValueError):
    """An expense uses a split type other than an equal split."""


class SettlementInvariantError(AssertionError):
    """Balances handed to the planner do not net to zero, or the sweep left residue."""


class SuggestionError(RuntimeError):
    """The language model could not produce a usable settlement suggestion."""
