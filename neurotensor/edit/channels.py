# neurotensor/edit/channels.py
from __future__ import annotations

from dataclasses import replace
import logging
from typing import Iterable, Sequence

import numpy as np

from neurotensor.core import (
    CHANNEL_TYPES,
    ChannelInfo,
    Components,
    InvalidArgument,
    LocationTable,
    OptodePairing,
    PreconditionFailed,
    Recording,
    Region,
    commit,
    detect_channel_type,
    in_region,
    operation,
)
from neurotensor.core.recording import ChannelSelector


logger = logging.getLogger(__name__)


# ---- queries ----
def signal_channels(rec: Recording) -> list[int]:
    """Indices of the channels carrying signal for the recording's data type."""
    types = rec.data_type.signal_types
    return [i for i, t in enumerate(rec.channel_types) if t in types]


def channel_index(rec: Recording, channels: ChannelSelector) -> list[int]:
    """Sorted unique channel indices for any selector."""
    return sorted(rec.channel_index(channels))


def get_channel(rec: Recording, channel: int | str) -> int | str:
    """Label -> index, index -> label."""
    idx = _single(rec, channel)
    return idx if isinstance(channel, str) else rec.labels[idx]


def pick(rec: Recording, region: Region | str | Iterable[Region | str]) -> list[int]:
    """
    Signal channels lying in every requested region.

    pick(rec, "left") -> left-hemisphere channels
    pick(rec, ["left", "frontal"]) -> left frontal channels
    """
    if isinstance(region, (str, Region)):
        region = [region]
    try:
        regions = [Region(r) for r in region]
    except ValueError as e:
        raise InvalidArgument(f"Unknown region; use one of {[r.value for r in Region]}.") from e
    if not regions:
        raise InvalidArgument("At least one region is required.")

    labels = rec.labels
    return [i for i in signal_channels(rec) if all(in_region(labels[i], r) for r in regions)]


def extract_channel(rec: Recording, channels: ChannelSelector) -> np.ndarray:
    """Copy of the selected channels as [channels, samples, epochs]."""
    return rec.data[channel_index(rec, channels)].copy()


# ---- metadata edits ----
def rename_channel(rec: Recording, channel: int | str, name: str, *, inplace: bool = False) -> Recording:
    idx = _single(rec, channel)
    old = rec.labels[idx]
    others = [lbl.lower() for i, lbl in enumerate(rec.labels) if i != idx]
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgument("Channel name must be a non-empty string.")
    if name.lower() in others:
        raise InvalidArgument(f"Channel '{name}' already exists.")

    info = rec.header.recording
    channels = list(info.channels)
    channels[idx] = channels[idx].rename(name)
    pairing = info.optode_pairing.rename_channel(old, name) if info.optode_pairing else None
    header = rec.header.with_history(operation("rename_channel", ch=old, name=name))
    header = replace(header, recording=info.with_channels(channels, info.bad_channel_matrix, pairing))

    result = rec.evolve(header=header, locations=rec.locations.rename_label(old, name))
    logger.debug("rename_channel: %s -> %s", old, name)
    return commit(rec, result, inplace)


def set_channel_type(rec: Recording, channel: int | str, channel_type: str, *, inplace: bool = False) -> Recording:
    idx = _single(rec, channel)
    if channel_type not in CHANNEL_TYPES:
        raise InvalidArgument(f"channel_type must be one of {CHANNEL_TYPES}, got '{channel_type}'.")
    result = _update_channel(
        rec, idx, rec.header.recording.channels[idx].with_type(channel_type),
        operation("set_channel_type", ch=rec.labels[idx], type=channel_type),
    )
    return commit(rec, result, inplace)


def set_channel_unit(rec: Recording, channel: int | str, unit: str, *, inplace: bool = False) -> Recording:
    idx = _single(rec, channel)
    result = _update_channel(
        rec, idx, rec.header.recording.channels[idx].with_unit(str(unit)),
        operation("set_channel_unit", ch=rec.labels[idx], unit=unit),
    )
    return commit(rec, result, inplace)


def add_labels(rec: Recording, labels: Sequence[str], *, inplace: bool = False) -> Recording:
    """Replace every channel label; locations and optode pairs follow by position."""
    labels = [str(lbl) for lbl in labels]
    if len(labels) != rec.channel_count:
        raise InvalidArgument(f"Got {len(labels)} labels for {rec.channel_count} channels.")
    if len({lbl.lower() for lbl in labels}) != len(labels):
        raise InvalidArgument("Channel labels must be unique.")

    info = rec.header.recording
    old = info.labels
    channels = [c.rename(lbl) for c, lbl in zip(info.channels, labels)]
    pairing = info.optode_pairing
    if pairing is not None:
        for o, n in zip(old, labels):
            pairing = pairing.rename_channel(o, n)

    frame = rec.locations.frame
    frame["label"] = [labels[c] for c in frame["channel"]]

    header = rec.header.with_history(operation("add_labels", labels=labels))
    header = replace(header, recording=info.with_channels(channels, info.bad_channel_matrix, pairing))
    result = rec.evolve(header=header, locations=LocationTable(frame))
    return commit(rec, result, inplace)


# ---- signal edits ----
def replace_channel(rec: Recording, channel: int | str, signal, *, inplace: bool = False) -> Recording:
    """Overwrite one channel with `signal` shaped [samples, epochs] or [1, samples, epochs]."""
    idx = _single(rec, channel)
    signal = _channel_signal(rec, signal)

    data = rec.data.astype(np.result_type(rec.data, signal), copy=True)
    data[idx] = signal
    header = rec.header.with_history(operation("replace_channel", ch=rec.labels[idx]))
    result = rec.evolve(header=header, data=data, components=Components())
    logger.debug("replace_channel: %s", rec.labels[idx])
    return commit(rec, result, inplace)


def add_channel(
    rec: Recording,
    signal,
    label: str,
    *,
    channel_type: str | None = None,
    unit: str = "",
    position: int | None = None,
    inplace: bool = False,
) -> Recording:
    """Insert a channel (appended unless `position` is given)."""
    if not isinstance(label, str) or not label.strip():
        raise InvalidArgument("Channel label must be a non-empty string.")
    signal = _channel_signal(rec, signal)
    n = rec.channel_count
    pos = n if position is None else int(position)
    if not 0 <= pos <= n:
        raise InvalidArgument(f"position must lie within [0, {n}], got {position}.")
    if label.lower() in (lbl.lower() for lbl in rec.labels):
        raise InvalidArgument(f"Channel '{label}' already exists.")
    if channel_type is None:
        channel_type = detect_channel_type(label)

    info = rec.header.recording
    channels = list(info.channels)
    channels.insert(pos, ChannelInfo(label=label, channel_type=channel_type, unit=unit))
    bad = np.insert(info.bad_channel_matrix, pos, False, axis=0)
    data = np.concatenate([rec.data[:pos], signal[np.newaxis], rec.data[pos:]], axis=0)

    header = rec.header.with_history(operation("add_channel", label=label, pos=pos))
    header = replace(header, recording=info.with_channels(channels, bad))
    result = rec.evolve(
        header=header,
        data=data,
        components=Components(),
        markers=rec.markers.insert_channel(pos),
        locations=rec.locations.renumber([c.label for c in channels]),
    )
    logger.debug("add_channel: %s at %d -> %d channels", label, pos, result.channel_count)
    return commit(rec, result, inplace)


# ---- structural edits ----
def delete_channel(
    rec: Recording,
    channels: ChannelSelector,
    *,
    allow_paired: bool = False,
    inplace: bool = False,
) -> Recording:
    """
    Delete channel(s) by label and/or index.

    Channels are removed in descending index order together with their
    header rows, bad-channel flags, locations and channel-bound markers.
    NIRS channels that belong to an optode pair must be removed through
    delete_optode() (or with allow_paired=True).
    """
    idx = channel_index(rec, channels)
    n = rec.channel_count
    if not idx:
        raise InvalidArgument("No channels to delete.")
    if len(idx) >= n:
        raise InvalidArgument(
            f"Number of channels to delete ({len(idx)}) must be smaller than number of all channels ({n})."
        )

    pairing = rec.header.recording.optode_pairing
    if pairing is not None and not allow_paired:
        paired = [rec.labels[i] for i in idx if pairing.is_paired(rec.labels[i])]
        if paired:
            raise PreconditionFailed(
                f"Channel(s) {paired} belong to optode pairs; delete them using delete_optode()."
            )

    result = _drop_channels(rec, idx, pairing, operation("delete_channel", ch=idx))
    logger.debug("delete_channel: %d -> %d channels", n, result.channel_count)
    return commit(rec, result, inplace)


def keep_channel(
    rec: Recording,
    channels: ChannelSelector,
    *,
    allow_paired: bool = False,
    inplace: bool = False,
) -> Recording:
    """Delete every channel not selected; keeping all channels is a no-op."""
    keep = set(channel_index(rec, channels))
    if not keep:
        raise InvalidArgument("At least one channel must be kept.")
    drop = [i for i in range(rec.channel_count) if i not in keep]
    if not drop:
        return commit(rec, rec.copy(), inplace)
    return delete_channel(rec, drop, allow_paired=allow_paired, inplace=inplace)


def keep_channel_type(
    rec: Recording,
    channel_type: str = "eeg",
    *,
    allow_paired: bool = False,
    inplace: bool = False,
) -> Recording:
    if channel_type not in CHANNEL_TYPES:
        raise InvalidArgument(f"channel_type must be one of {CHANNEL_TYPES}, got '{channel_type}'.")
    idx = [i for i, t in enumerate(rec.channel_types) if t == channel_type]
    if not idx:
        raise InvalidArgument(f"Recording has no '{channel_type}' channels.")
    return keep_channel(rec, idx, allow_paired=allow_paired, inplace=inplace)


def delete_optode(rec: Recording, optode: str, *, inplace: bool = False) -> Recording:
    """Remove an optode together with every measurement channel it takes part in."""
    pairing = rec.header.recording.optode_pairing
    if pairing is None:
        raise PreconditionFailed("Recording has no optode pairing.")

    labels = pairing.channels_of(optode)
    idx = channel_index(rec, labels) if labels else []
    if len(idx) >= rec.channel_count:
        raise InvalidArgument(f"Deleting optode '{optode}' would remove every channel.")

    entry = operation("delete_optode", opt=optode)
    if idx:
        result = _drop_channels(rec, idx, pairing.without_optode(optode), entry)
    else:
        info = rec.header.recording
        header = replace(
            rec.header.with_history(entry),
            recording=replace(info, optode_pairing=pairing.without_optode(optode)),
        )
        result = rec.evolve(header=header)
    logger.debug("delete_optode: %s (%d channels)", optode, len(idx))
    return commit(rec, result, inplace)


# ---- helpers ----
def _single(rec: Recording, channel) -> int:
    idx = rec.channel_index(channel)
    if len(idx) != 1:
        raise InvalidArgument(f"Exactly one channel is required, got {len(idx)}.")
    return idx[0]


def _channel_signal(rec: Recording, signal) -> np.ndarray:
    signal = np.asarray(signal)
    if signal.ndim == 3 and signal.shape[0] == 1:
        signal = signal[0]
    if signal.ndim == 1 and rec.epoch_count == 1:
        signal = signal[:, np.newaxis]
    expected = (rec.epoch_length, rec.epoch_count)
    if signal.shape != expected:
        raise InvalidArgument(f"Channel signal must have shape {expected}, got {signal.shape}.")
    if not np.issubdtype(signal.dtype, np.number):
        raise InvalidArgument(f"Channel signal must be numeric, got dtype {signal.dtype}.")
    return signal


def _update_channel(rec: Recording, idx: int, channel: ChannelInfo, entry: str) -> Recording:
    info = rec.header.recording
    channels = list(info.channels)
    channels[idx] = channel
    header = replace(
        rec.header.with_history(entry),
        recording=info.with_channels(channels, info.bad_channel_matrix),
    )
    return rec.evolve(header=header)


def _drop_channels(
    rec: Recording,
    indices: Sequence[int],
    pairing: OptodePairing | None,
    entry: str,
) -> Recording:
    info = rec.header.recording
    channels = list(info.channels)
    bad = info.bad_channel_matrix
    markers = rec.markers
    locations = rec.locations
    removed: list[str] = []

    for idx in sorted(indices, reverse=True):
        label = channels[idx].label
        removed.append(label)
        locations = locations.delete_label(label)
        markers = markers.delete_channel(idx)
        bad = np.delete(bad, idx, axis=0)
        del channels[idx]

    if pairing is not None:
        pairing = pairing.without_channels(removed)

    drop = set(indices)
    keep = [i for i in range(rec.channel_count) if i not in drop]
    header = replace(
        rec.header.with_history(entry),
        recording=replace(info.with_channels(channels, bad), optode_pairing=pairing),
    )
    return rec.evolve(
        header=header,
        data=rec.data[keep],
        components=Components(),
        markers=markers,
        locations=locations.renumber([c.label for c in channels]),
    )
