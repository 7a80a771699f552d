# neurotensor/core/exceptions.py
from __future__ import annotations


class CoreError(Exception):
    """Base error for all core-domain exceptions."""


# ---- Argument errors ----
class InvalidArgument(CoreError, ValueError):
    """Raised for malformed selectors, incompatible shapes, or edits that would empty the recording."""


class StateError(InvalidArgument):
    """Raised when an operation is invoked on the wrong epoch-state (epoched vs. unepoched)."""


# ---- Precondition errors ----
class PreconditionFailed(CoreError):
    """Raised when required metadata (locations, reference channels, optode paths) is missing."""


# ---- Lookup errors (also behave like KeyError / IndexError) ----
class ChannelNotFound(InvalidArgument, KeyError):
    """Raised when a requested channel label or index is not present."""


class EpochNotFound(InvalidArgument, IndexError):
    """Raised when a requested epoch index is out of range."""


class ComponentNotFound(CoreError, KeyError):
    """Raised when a requested component name is not present."""
