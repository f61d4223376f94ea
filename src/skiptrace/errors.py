"""Exception types raised by the skiptrace core.

Data-quality problems (empty text, out-of-range captures, unknown area codes)
never raise; they degrade to empty or unboosted results. Only caller bugs and
broken deployments surface as exceptions.
"""

from __future__ import annotations


class SkipTraceError(Exception):
    """Base class for skiptrace errors."""


class ContractViolationError(SkipTraceError, TypeError):
    """Raised when a caller passes arguments of the wrong shape."""


class ReferenceDataError(SkipTraceError):
    """Raised when a configured reference data file is missing or malformed."""


__all__ = ["SkipTraceError", "ContractViolationError", "ReferenceDataError"]
