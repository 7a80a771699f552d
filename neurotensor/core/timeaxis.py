# neurotensor/core/timeaxis.py
from __future__ import annotations

import numpy as np

from .exceptions import InvalidArgument


def validate_time_axis(t, *, name: str, length: int | None = None) -> np.ndarray:
    """Return `t` as a 1D float array after checking shape, finiteness and ordering."""
    t = np.asarray(t, dtype=float)

    if t.ndim != 1:
        raise InvalidArgument(f"`{name}` must be 1D, got shape {t.shape}")
    if length is not None and t.size != length:
        raise InvalidArgument(f"`{name}` must have {length} points, got {t.size}")

    if t.size > 0:
        if not np.isfinite(t).all():
            raise InvalidArgument(f"`{name}` contains non-finite values (NaN/Inf).")
        if np.any(np.diff(t) < 0):
            raise InvalidArgument(f"`{name}` must be monotonic non-decreasing.")

    return t


def contiguous_time(start: float, n: int, sampling_rate: float) -> np.ndarray:
    """`n` timestamps starting at `start`, stepping at 1/sampling_rate."""
    return float(start) + np.arange(n, dtype=float) / float(sampling_rate)


def epoch_window(epoch: int, epoch_length: int) -> tuple[int, int]:
    """Absolute (first, last) sample index covered by `epoch`, both inclusive."""
    first = epoch * epoch_length
    return first, first + epoch_length - 1


def estimate_sampling_rate(t) -> float:
    """Sampling rate from the median step of a timestamp vector (seconds)."""
    t = np.asarray(t, dtype=float)
    if t.size < 2:
        raise InvalidArgument("At least two timestamps are needed to estimate the sampling rate.")
    step = float(np.median(np.diff(t)))
    if step <= 0:
        raise InvalidArgument(f"Timestamps must increase, got median step {step}.")
    return float(round(1.0 / step, 6))
