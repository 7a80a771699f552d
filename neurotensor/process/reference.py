# neurotensor/process/reference.py
"""
Re-referencing of the signal channels.

Each scheme is a small frozen dataclass carrying only the parameters valid
for it; `reference(rec, scheme)` applies any of them. Reference signals are
computed per epoch from an immutable float snapshot of the signal channels,
so every (channel, epoch) result is independent of evaluation order.
Non-signal channels (reference electrodes, EOG, markers, ...) are never
modified.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Sequence, Union

import numpy as np
from scipy.spatial.distance import cdist

from neurotensor.config import ReferenceConfig
from neurotensor.core import (
    ChannelNotFound,
    Components,
    InvalidArgument,
    PreconditionFailed,
    Recording,
    Region,
    commit,
    laterality,
    operation,
)
from neurotensor.edit.channels import signal_channels


logger = logging.getLogger(__name__)


class Statistic(str, Enum):
    MEAN = "mean"
    MEDIAN = "median"

    def reduce(self, x: np.ndarray, axis: int = 0) -> np.ndarray:
        if self is Statistic.MEDIAN:
            return np.median(x, axis=axis)
        return np.mean(x, axis=axis)


class EarMode(str, Enum):
    LINKED = "linked"                # average of both electrodes for every channel
    IPSILATERAL = "ipsilateral"      # left -> left electrode, right -> right electrode
    CONTRALATERAL = "contralateral"  # left -> right electrode, right -> left electrode


# ---- schemes ----
@dataclass(frozen=True)
class ChannelReference:
    """
    Reference to one channel, or to the mean/median of several.

    A single reference channel is subtracted from every other signal
    channel; a multi-channel reference is subtracted from all of them.
    """
    channels: tuple[int | str, ...]
    statistic: Statistic = Statistic.MEAN

    def __post_init__(self) -> None:
        channels = self.channels
        if isinstance(channels, (int, str, np.integer)):
            channels = (channels,)
        object.__setattr__(self, "channels", tuple(channels))
        object.__setattr__(self, "statistic", Statistic(self.statistic))
        if not self.channels:
            raise InvalidArgument("At least one reference channel is required.")


@dataclass(frozen=True)
class CommonAverageReference:
    exclude_current: bool = True
    exclude_artifact_prone: bool = False
    artifact_prone: tuple[str, ...] = ("Fp1", "Fp2", "O1", "O2")
    statistic: Statistic = Statistic.MEAN

    def __post_init__(self) -> None:
        object.__setattr__(self, "artifact_prone", tuple(self.artifact_prone))
        object.__setattr__(self, "statistic", Statistic(self.statistic))


@dataclass(frozen=True)
class AuricularReference:
    mode: EarMode = EarMode.LINKED
    statistic: Statistic = Statistic.MEAN
    electrodes: tuple[str, str] = ("A1", "A2")

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", EarMode(self.mode))
        object.__setattr__(self, "statistic", Statistic(self.statistic))
        object.__setattr__(self, "electrodes", tuple(self.electrodes))
        if len(self.electrodes) != 2:
            raise InvalidArgument(f"Two reference electrodes are required, got {self.electrodes}.")


@dataclass(frozen=True)
class MastoidReference(AuricularReference):
    electrodes: tuple[str, str] = ("M1", "M2")


@dataclass(frozen=True)
class PlanarLaplacianReference:
    """`nn` nearest electrodes in the 2-D projection, optionally weighted by inverse distance."""
    nn: int = 4
    weighted: bool = False
    statistic: Statistic = Statistic.MEAN

    def __post_init__(self) -> None:
        object.__setattr__(self, "statistic", Statistic(self.statistic))
        if isinstance(self.nn, bool) or not isinstance(self.nn, (int, np.integer)):
            raise InvalidArgument(f"nn must be an integer, got {self.nn!r}.")


ReferenceScheme = Union[
    ChannelReference,
    CommonAverageReference,
    AuricularReference,
    MastoidReference,
    PlanarLaplacianReference,
]


# ---- entry point ----
def reference(rec: Recording, scheme: ReferenceScheme, *, inplace: bool = False) -> Recording:
    """Apply a referencing scheme to the signal channels of `rec`."""
    sig = signal_channels(rec)
    if not sig:
        raise InvalidArgument(
            f"Recording has no signal channels of types {sorted(rec.data_type.signal_types)}."
        )
    snapshot = rec.data.astype(float)
    med = scheme.statistic is Statistic.MEDIAN

    if isinstance(scheme, ChannelReference):
        out, ref_idx = _reference_channel(rec, snapshot, sig, scheme)
        labels = [rec.labels[i] for i in ref_idx]
        label = f"channel: {', '.join(labels)}"
        entry = operation("reference_ch", ch=labels, med=med)
    elif isinstance(scheme, CommonAverageReference):
        out = _reference_car(rec, snapshot, sig, scheme)
        label = "CAR"
        entry = operation(
            "reference_car",
            exclude_fpo=scheme.exclude_artifact_prone,
            exclude_current=scheme.exclude_current,
            med=med,
        )
    elif isinstance(scheme, AuricularReference):
        out = _reference_ear(rec, snapshot, sig, scheme)
        prefix = "M" if isinstance(scheme, MastoidReference) else "A"
        label = f"{prefix} ({scheme.mode.value})"
        entry = operation(f"reference_{prefix.lower()}", type=scheme.mode.value, med=med)
    elif isinstance(scheme, PlanarLaplacianReference):
        out = _reference_plap(rec, snapshot, sig, scheme)
        label = f"PLAP ({scheme.nn})"
        entry = operation("reference_plap", nn=scheme.nn, weights=scheme.weighted, med=med)
    else:
        raise InvalidArgument(f"Unknown referencing scheme: {scheme!r}")

    snapshot[sig] = out
    header = rec.header.with_history(entry).with_recording(reference=label)
    result = rec.evolve(header=header, data=snapshot, components=Components())
    logger.debug("reference: %s on %d channels", label, len(sig))
    return commit(rec, result, inplace)


# ---- convenience wrappers ----
def reference_ch(
    rec: Recording,
    channels: int | str | Sequence[int | str],
    *,
    med: bool = False,
    inplace: bool = False,
) -> Recording:
    if isinstance(channels, range):
        channels = tuple(channels)
    scheme = ChannelReference(channels, Statistic.MEDIAN if med else Statistic.MEAN)
    return reference(rec, scheme, inplace=inplace)


def reference_car(
    rec: Recording,
    *,
    exclude_fpo: bool = False,
    exclude_current: bool = True,
    med: bool = False,
    config: ReferenceConfig | None = None,
    inplace: bool = False,
) -> Recording:
    config = config or ReferenceConfig()
    scheme = CommonAverageReference(
        exclude_current=exclude_current,
        exclude_artifact_prone=exclude_fpo,
        artifact_prone=config.car_exclude_labels,
        statistic=Statistic.MEDIAN if med else Statistic.MEAN,
    )
    return reference(rec, scheme, inplace=inplace)


def reference_a(
    rec: Recording,
    *,
    mode: EarMode | str = EarMode.LINKED,
    med: bool = False,
    config: ReferenceConfig | None = None,
    inplace: bool = False,
) -> Recording:
    config = config or ReferenceConfig()
    scheme = AuricularReference(
        mode=mode,
        statistic=Statistic.MEDIAN if med else Statistic.MEAN,
        electrodes=config.auricular_labels,
    )
    return reference(rec, scheme, inplace=inplace)


def reference_m(
    rec: Recording,
    *,
    mode: EarMode | str = EarMode.LINKED,
    med: bool = False,
    config: ReferenceConfig | None = None,
    inplace: bool = False,
) -> Recording:
    config = config or ReferenceConfig()
    scheme = MastoidReference(
        mode=mode,
        statistic=Statistic.MEDIAN if med else Statistic.MEAN,
        electrodes=config.mastoid_labels,
    )
    return reference(rec, scheme, inplace=inplace)


def reference_plap(
    rec: Recording,
    *,
    nn: int | None = None,
    weights: bool = False,
    med: bool = False,
    config: ReferenceConfig | None = None,
    inplace: bool = False,
) -> Recording:
    config = config or ReferenceConfig()
    scheme = PlanarLaplacianReference(
        nn=config.laplacian_nn if nn is None else nn,
        weighted=weights,
        statistic=Statistic.MEDIAN if med else Statistic.MEAN,
    )
    return reference(rec, scheme, inplace=inplace)


# ---- algorithms ----
# Each returns the referenced [len(sig), samples, epochs] block computed from `snapshot`.
def _reference_channel(
    rec: Recording,
    snapshot: np.ndarray,
    sig: list[int],
    scheme: ChannelReference,
) -> tuple[np.ndarray, list[int]]:
    ref_idx = rec.channel_index(scheme.channels)
    out = snapshot[sig].copy()
    if len(ref_idx) == 1:
        ref = snapshot[ref_idx[0]]
        targets = np.array([i != ref_idx[0] for i in sig])
        out[targets] -= ref
    else:
        out -= scheme.statistic.reduce(snapshot[ref_idx], axis=0)
    return out, ref_idx


def _reference_car(
    rec: Recording,
    snapshot: np.ndarray,
    sig: list[int],
    scheme: CommonAverageReference,
) -> np.ndarray:
    labels = rec.labels
    prone = {lbl.lower() for lbl in scheme.artifact_prone} if scheme.exclude_artifact_prone else set()
    base = [i for i in sig if labels[i].lower() not in prone]

    out = np.empty((len(sig),) + snapshot.shape[1:], dtype=float)
    for row, i in enumerate(sig):
        pool = [j for j in base if not (scheme.exclude_current and j == i)]
        if not pool:
            raise InvalidArgument(f"No channels left to build the common average for '{labels[i]}'.")
        out[row] = snapshot[i] - scheme.statistic.reduce(snapshot[pool], axis=0)
    return out


def _reference_ear(
    rec: Recording,
    snapshot: np.ndarray,
    sig: list[int],
    scheme: AuricularReference,
) -> np.ndarray:
    left_label, right_label = scheme.electrodes
    try:
        left_idx = rec.channel_index(left_label)[0]
        right_idx = rec.channel_index(right_label)[0]
    except ChannelNotFound as e:
        raise PreconditionFailed(
            f"Recording does not contain both {left_label} and {right_label} channels."
        ) from e

    left = snapshot[left_idx]
    right = snapshot[right_idx]
    both = scheme.statistic.reduce(np.stack([left, right]), axis=0)

    if scheme.mode is EarMode.LINKED:
        return snapshot[sig] - both

    same_side = scheme.mode is EarMode.IPSILATERAL
    refs = {
        Region.LEFT: left if same_side else right,
        Region.RIGHT: right if same_side else left,
        Region.CENTRAL: both,
    }
    labels = rec.labels
    return np.stack([snapshot[i] - refs[laterality(labels[i])] for i in sig])


def _reference_plap(
    rec: Recording,
    snapshot: np.ndarray,
    sig: list[int],
    scheme: PlanarLaplacianReference,
) -> np.ndarray:
    n = len(sig)
    nn = int(scheme.nn)
    if nn < 1:
        raise InvalidArgument(f"nn must be >= 1, got {nn}.")
    if nn > n - 1:
        raise InvalidArgument(f"nn must be <= {n - 1} (number of signal channels - 1), got {nn}.")
    if not rec.has_locations:
        raise PreconditionFailed("Electrode locations are required for the planar Laplacian.")

    labels = [rec.labels[i] for i in sig]
    xy = rec.locations.planar(labels)
    d = cdist(xy, xy)
    d[d == 0] = np.inf
    nn_idx = np.argsort(d, axis=1, kind="stable")[:, :nn]

    x = snapshot[sig]
    out = np.empty_like(x)
    for row in range(n):
        neighbours = nn_idx[row]
        dist = d[row, neighbours]
        if np.isinf(dist).any():
            raise PreconditionFailed(
                f"Channel '{labels[row]}' has fewer than {nn} neighbours at distinct locations."
            )
        block = x[neighbours]
        if not scheme.weighted:
            ref = scheme.statistic.reduce(block, axis=0)
        else:
            g = (1.0 / dist) / np.sum(1.0 / dist)
            if scheme.statistic is Statistic.MEDIAN:
                ref = _weighted_median(block, g)
            else:
                ref = np.tensordot(g, block, axes=1)
        out[row] = x[row] - ref
    return out


def _weighted_median(x: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Weighted median along axis 0; `w` sums to 1."""
    order = np.argsort(x, axis=0, kind="stable")
    xs = np.take_along_axis(x, order, axis=0)
    cw = np.cumsum(w[order], axis=0)
    k = np.argmax(cw >= 0.5 - 1e-12, axis=0)
    return np.take_along_axis(xs, k[np.newaxis], axis=0)[0]
