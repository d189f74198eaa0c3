"""
harmonic.exceptions — Error Taxonomy
=====================================

Every failure raised by the engine and service layers derives from
:class:`HarmonicError`.  Nothing here is retried internally; the HTTP layer
maps each kind to a status code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from harmonic.engine.quota import QuotaSnapshot


class HarmonicError(Exception):
    """Base class for all Harmonic Exchange errors."""


class LookupFailure(HarmonicError):
    """A database read could not be completed.

    The underlying driver error is chained as ``__cause__``.
    """


class QuotaExceeded(HarmonicError):
    """The member has no asks left in the current window.

    This is a business-rule rejection, not a system error.  ``snapshot``
    carries the numbers the member needs to see.
    """

    def __init__(self, snapshot: QuotaSnapshot) -> None:
        self.snapshot = snapshot
        super().__init__(
            f"You've used {snapshot.used} of {snapshot.limit} asks in the "
            f"{snapshot.window_text}."
        )

    @property
    def used(self) -> int:
        return self.snapshot.used

    @property
    def limit(self) -> int:
        return self.snapshot.limit

    def to_dict(self) -> dict:
        return {"error": str(self), "quota": self.snapshot.to_dict()}


class InvalidArgument(HarmonicError, ValueError):
    """The caller passed a malformed value (bad track, negative count…)."""


class NotFound(HarmonicError, LookupError):
    """A referenced profile, offer or request does not exist."""


class PermissionDenied(HarmonicError):
    """The acting profile may not perform this change."""
