# neurotensor/edit/epochs.py
from __future__ import annotations

from dataclasses import replace
import logging

import numpy as np

from neurotensor.core import (
    Components,
    InvalidArgument,
    Recording,
    StateError,
    commit,
    operation,
)
from neurotensor.core.recording import ChannelSelector, EpochSelector
from neurotensor.core.timeaxis import contiguous_time, epoch_window


logger = logging.getLogger(__name__)


# ---- segmentation ----
def epoch(
    rec: Recording,
    ep_len: int | None = None,
    ep_n: int | None = None,
    *,
    inplace: bool = False,
) -> Recording:
    """
    Split the signal into equal, non-overlapping epochs.

    Give either the epoch length in samples (`ep_len`) or the number of
    epochs (`ep_n`). Samples left over after the last full epoch are
    discarded, together with the markers starting in them. A channel
    flagged bad in any former epoch is flagged bad in every new epoch.
    """
    if (ep_len is None) == (ep_n is None):
        raise InvalidArgument("Give exactly one of `ep_len` and `ep_n`.")

    total = rec.signal_length
    if ep_n is not None:
        ep_n = int(ep_n)
        if not 1 <= ep_n <= total:
            raise InvalidArgument(f"ep_n must lie within [1, {total}], got {ep_n}.")
        ep_len = total // ep_n
    else:
        ep_len = int(ep_len)
        if not 1 <= ep_len <= total:
            raise InvalidArgument(f"ep_len must lie within [1, {total}], got {ep_len}.")
        ep_n = total // ep_len

    kept = ep_len * ep_n
    if kept < total:
        logger.warning("epoch: discarding %d trailing samples", total - kept)

    ch_n = rec.channel_count
    flat = rec.data.transpose(0, 2, 1).reshape(ch_n, total)
    data = np.ascontiguousarray(flat[:, :kept].reshape(ch_n, ep_n, ep_len).transpose(0, 2, 1))

    info = rec.header.recording
    bad = np.repeat(info.bad_channel_matrix.any(axis=1, keepdims=True), ep_n, axis=1)
    header = replace(
        rec.header.with_history(operation("epoch", ep_len=ep_len, ep_n=ep_n)),
        recording=info.with_channels(info.channels, bad),
    )
    result = rec.evolve(
        header=header,
        data=data,
        time_pts=rec.time_pts[:kept].copy(),
        epoch_time=contiguous_time(0.0, ep_len, rec.sampling_rate),
        components=Components(),
        markers=rec.markers.truncate(kept),
    )
    logger.debug("epoch: %d x %d -> %d x %d", rec.epoch_length, rec.epoch_count, ep_len, ep_n)
    return commit(rec, result, inplace)


def unepoch(rec: Recording, *, inplace: bool = False) -> Recording:
    """Concatenate all epochs back into one continuous epoch."""
    if not rec.is_epoched:
        raise StateError("Recording is not epoched.")

    total = rec.signal_length
    data = np.ascontiguousarray(rec.data.transpose(0, 2, 1).reshape(rec.channel_count, total, 1))

    info = rec.header.recording
    bad = info.bad_channel_matrix.any(axis=1, keepdims=True)
    header = replace(
        rec.header.with_history(operation("unepoch")),
        recording=info.with_channels(info.channels, bad),
    )
    result = rec.evolve(
        header=header,
        data=data,
        epoch_time=rec.time_pts.copy(),
        components=Components(),
    )
    logger.debug("unepoch: %d epochs -> 1", rec.epoch_count)
    return commit(rec, result, inplace)


def epoch_time(rec: Recording, ts: float, *, inplace: bool = False) -> Recording:
    """Shift the per-epoch time axis so that it starts at `ts` seconds (e.g. -0.2 for a pre-stimulus baseline)."""
    ts = float(ts)
    if not np.isfinite(ts):
        raise InvalidArgument(f"ts must be finite, got {ts}.")
    header = rec.header.with_history(operation("epoch_time", ts=ts))
    result = rec.evolve(header=header, epoch_time=rec.epoch_time - rec.epoch_time[0] + ts)
    return commit(rec, result, inplace)


# ---- extraction ----
def extract_epoch(rec: Recording, ep: int) -> Recording:
    """Single-epoch recording holding a copy of epoch `ep`; its markers are re-based."""
    idx = rec.epoch_index(ep)
    if len(idx) != 1:
        raise InvalidArgument(f"Exactly one epoch is required, got {len(idx)}.")
    k = idx[0]
    first, last = epoch_window(k, rec.epoch_length)

    info = rec.header.recording
    header = replace(
        rec.header.with_history(operation("extract_epoch", ep=k)),
        recording=info.with_channels(info.channels, info.bad_channel_matrix[:, [k]]),
    )
    return rec.evolve(
        header=header,
        data=rec.data[:, :, [k]],
        time_pts=rec.time_pts[first:last + 1].copy(),
        components=Components(),
        markers=rec.markers.window(first, last),
    )


def extract_data(
    rec: Recording,
    channels: ChannelSelector | None = None,
    epochs: EpochSelector | None = None,
) -> np.ndarray:
    """Writable copy of the selected [channels, samples, epochs] block."""
    if channels is not None:
        channels = sorted(rec.channel_index(channels))
    if epochs is not None:
        epochs = sorted(rec.epoch_index(epochs))
    return rec.view(channels, epochs).copy()


def extract_time(rec: Recording) -> np.ndarray:
    return rec.time_pts.copy()


def extract_eptime(rec: Recording) -> np.ndarray:
    return rec.epoch_time.copy()


# ---- structural edits ----
def delete_epoch(rec: Recording, epochs: EpochSelector, *, inplace: bool = False) -> Recording:
    """
    Delete epoch(s) of an epoched recording.

    Epochs are removed in descending order. Markers starting inside a
    removed epoch are deleted; markers after it move back by one epoch
    length. The time axis is rebuilt from the original first timestamp.
    """
    if not rec.is_epoched:
        raise StateError("Recording is not epoched; cannot delete the last epoch.")

    idx = sorted(rec.epoch_index(epochs), reverse=True)
    if not idx:
        raise InvalidArgument("No epochs to delete.")
    if len(idx) >= rec.epoch_count:
        raise InvalidArgument("You cannot delete all epochs.")

    ep_len = rec.epoch_length
    markers = rec.markers
    for k in idx:
        first, last = epoch_window(k, ep_len)
        markers = markers.delete_within(first, last).shift_after(last, ep_len)

    data = np.delete(rec.data, idx, axis=2)
    info = rec.header.recording
    bad = np.delete(info.bad_channel_matrix, idx, axis=1)
    header = replace(
        rec.header.with_history(operation("delete_epoch", ep=sorted(idx))),
        recording=info.with_channels(info.channels, bad),
    )
    result = rec.evolve(
        header=header,
        data=data,
        time_pts=contiguous_time(rec.time_pts[0], ep_len * data.shape[2], rec.sampling_rate),
        components=Components(),
        markers=markers,
    )
    logger.debug("delete_epoch: %d -> %d epochs", rec.epoch_count, result.epoch_count)
    return commit(rec, result, inplace)


def keep_epoch(rec: Recording, epochs: EpochSelector, *, inplace: bool = False) -> Recording:
    """Delete every epoch not selected; keeping all epochs is a no-op."""
    if not rec.is_epoched:
        raise StateError("Recording is not epoched.")
    keep = set(rec.epoch_index(epochs))
    if not keep:
        raise InvalidArgument("At least one epoch must be kept.")
    drop = [k for k in range(rec.epoch_count) if k not in keep]
    if not drop:
        return commit(rec, rec.copy(), inplace)
    return delete_epoch(rec, drop, inplace=inplace)
