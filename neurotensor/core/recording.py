# neurotensor/core/recording.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import logging
from typing import Any, Iterable, Iterator, Sequence

import numpy as np

from .channel import ChannelInfo, DataType, detect_channel_type
from .components import Component, Components
from .exceptions import ChannelNotFound, EpochNotFound, InvalidArgument
from .locations import LocationTable
from .markers import MarkerTable
from .metadata import ExperimentInfo, Header, RecordingInfo, SubjectInfo
from .timeaxis import contiguous_time, validate_time_axis


logger = logging.getLogger(__name__)

ChannelSelector = int | str | Iterable[int | str]
EpochSelector = int | Iterable[int]


@dataclass(slots=True, eq=False, repr=False)
class Recording:
    """
    Multichannel biosignal recording: header + time axes + signal tensor.

    Design goals:
    - one shape: `data` is always [channels, samples_per_epoch, epochs];
      an unsegmented recording is a single epoch spanning the whole signal
    - consistent: every per-channel table, the markers, the locations and the
      components are validated against the tensor on construction
    - derived sizes are read from the tensor, never stored
    - dict-like channel access: rec["Cz"] -> [samples, epochs] read-only view
    """
    header: Header
    time_pts: np.ndarray
    epoch_time: np.ndarray
    data: np.ndarray
    components: Components = field(default_factory=Components)
    markers: MarkerTable = field(default_factory=MarkerTable)
    locations: LocationTable = field(default_factory=LocationTable)

    def __post_init__(self) -> None:
        if not isinstance(self.header, Header):
            raise InvalidArgument("Recording.header must be a Header instance.")
        if not isinstance(self.components, Components):
            raise InvalidArgument("Recording.components must be a Components instance.")
        if not isinstance(self.markers, MarkerTable):
            raise InvalidArgument("Recording.markers must be a MarkerTable instance.")
        if not isinstance(self.locations, LocationTable):
            raise InvalidArgument("Recording.locations must be a LocationTable instance.")

        data = np.asarray(self.data)
        if data.ndim != 3:
            raise InvalidArgument(
                f"`data` must be 3D [channels, samples, epochs], got shape {data.shape}"
            )
        if not (np.issubdtype(data.dtype, np.number) or data.dtype == bool):
            raise InvalidArgument(f"`data` must be numeric, got dtype {data.dtype}")
        ch_n, ep_len, ep_n = data.shape
        if ch_n < 1:
            raise InvalidArgument("A recording needs at least one channel.")
        if ep_len < 1:
            raise InvalidArgument("A recording needs at least one sample per epoch.")
        if ep_n < 1:
            raise InvalidArgument("A recording needs at least one epoch.")
        self.data = data

        self.time_pts = validate_time_axis(self.time_pts, name="time_pts", length=ep_len * ep_n)
        self.epoch_time = validate_time_axis(self.epoch_time, name="epoch_time", length=ep_len)

        info = self.header.recording
        if len(info.channels) != ch_n:
            raise InvalidArgument(
                f"Header describes {len(info.channels)} channels, data has {ch_n}."
            )
        if not info.bad_channels:
            self.header = replace(
                self.header,
                recording=info.with_channels(info.channels, np.zeros((ch_n, ep_n), dtype=bool)),
            )
        elif info.bad_channel_matrix.shape != (ch_n, ep_n):
            raise InvalidArgument(
                f"bad_channels has shape {info.bad_channel_matrix.shape}, expected {(ch_n, ep_n)}."
            )

        labels = self.labels
        self.markers.validate(ep_len * ep_n, ch_n)
        self.locations.validate(labels)
        self.components.check_shape(ch_n, ep_len, ep_n)
        if info.optode_pairing is not None:
            info.optode_pairing.validate(labels)

    # ---- construction helpers ----
    @classmethod
    def from_array(
        cls,
        data,
        sampling_rate: float,
        *,
        labels: Sequence[str] | None = None,
        channel_types: Sequence[str] | None = None,
        units: Sequence[str] | str = "",
        data_type: DataType | str = DataType.EEG,
        time_start: float = 0.0,
        markers: MarkerTable | None = None,
        locations: LocationTable | None = None,
        subject: SubjectInfo | None = None,
        experiment: ExperimentInfo | None = None,
        **recording_info: Any,
    ) -> "Recording":
        """
        Build a recording from a [channels, samples] or [channels, samples, epochs] array.

        Labels default to "ch1".."chN"; channel types are detected from the
        labels unless given explicitly.
        """
        data = np.asarray(data)
        if data.ndim == 2:
            data = data[:, :, np.newaxis]
        if data.ndim != 3:
            raise InvalidArgument(f"`data` must be 2D or 3D, got shape {data.shape}")
        ch_n, ep_len, ep_n = data.shape

        if labels is None:
            labels = [f"ch{i + 1}" for i in range(ch_n)]
        if len(labels) != ch_n:
            raise InvalidArgument(f"Got {len(labels)} labels for {ch_n} channels.")
        if channel_types is None:
            channel_types = [detect_channel_type(lbl) for lbl in labels]
        if len(channel_types) != ch_n:
            raise InvalidArgument(f"Got {len(channel_types)} channel types for {ch_n} channels.")
        if isinstance(units, str):
            units = [units] * ch_n

        channels = tuple(
            ChannelInfo(label=lbl, channel_type=ct, unit=u)
            for lbl, ct, u in zip(labels, channel_types, units)
        )
        info = RecordingInfo(
            sampling_rate=sampling_rate,
            channels=channels,
            bad_channels=np.zeros((ch_n, ep_n), dtype=bool).tolist(),
            data_type=DataType(data_type),
            **recording_info,
        )
        header = Header(
            recording=info,
            subject=subject or SubjectInfo(),
            experiment=experiment or ExperimentInfo(),
        )
        return cls(
            header=header,
            time_pts=contiguous_time(time_start, ep_len * ep_n, sampling_rate),
            epoch_time=contiguous_time(0.0, ep_len, sampling_rate),
            data=data,
            markers=markers if markers is not None else MarkerTable(),
            locations=locations.match(labels) if locations is not None else LocationTable(),
        )

    def copy(self) -> "Recording":
        """Deep copy; header, tables and components are immutable and shared."""
        return Recording(
            header=self.header,
            time_pts=self.time_pts.copy(),
            epoch_time=self.epoch_time.copy(),
            data=self.data.copy(),
            components=self.components,
            markers=self.markers,
            locations=self.locations,
        )

    def evolve(self, **changes: Any) -> "Recording":
        """
        New validated recording with `changes` applied; arrays not replaced are copied.
        """
        current = {
            "header": self.header,
            "time_pts": self.time_pts,
            "epoch_time": self.epoch_time,
            "data": self.data,
            "components": self.components,
            "markers": self.markers,
            "locations": self.locations,
        }
        unknown = set(changes) - set(current)
        if unknown:
            raise InvalidArgument(f"Unknown Recording fields: {sorted(unknown)}")
        for name in ("time_pts", "epoch_time", "data"):
            if name not in changes:
                changes[name] = current[name].copy()
        return Recording(**{**current, **changes})

    # ---- derived queries ----
    @property
    def channel_count(self) -> int:
        return int(self.data.shape[0])

    @property
    def epoch_length(self) -> int:
        return int(self.data.shape[1])

    @property
    def epoch_count(self) -> int:
        return int(self.data.shape[2])

    @property
    def signal_length(self) -> int:
        return self.epoch_length * self.epoch_count

    @property
    def sampling_rate(self) -> float:
        return self.header.recording.sampling_rate

    @property
    def duration(self) -> float:
        return self.signal_length / self.sampling_rate

    @property
    def data_type(self) -> DataType:
        return self.header.recording.data_type

    @property
    def labels(self) -> list[str]:
        return self.header.recording.labels

    @property
    def channel_types(self) -> list[str]:
        return self.header.recording.channel_types

    @property
    def units(self) -> list[str]:
        return self.header.recording.units

    @property
    def reference(self) -> str:
        return self.header.recording.reference

    @property
    def history(self) -> tuple[str, ...]:
        return self.header.history

    @property
    def bad_channels(self) -> np.ndarray:
        return self.header.recording.bad_channel_matrix

    @property
    def has_locations(self) -> bool:
        return len(self.locations) > 0

    @property
    def is_epoched(self) -> bool:
        return self.epoch_count > 1

    def summary(self) -> str:
        return (
            f"{self.data_type.value.upper()} ({self.channel_count} × {self.epoch_length} × "
            f"{self.epoch_count}; {self.duration:g} s)"
        )

    def __repr__(self) -> str:
        return f"Recording({self.summary()})"

    # ---- selectors ----
    def channel_index(self, channels: ChannelSelector) -> list[int]:
        """
        Resolve labels and/or indices to channel indices.

        Order follows the request; duplicates are dropped. Labels match
        exactly first, then case-insensitively.
        """
        if isinstance(channels, (str, int, np.integer)) or not isinstance(channels, Iterable):
            channels = [channels]

        labels = self.labels
        lowered = [lbl.lower() for lbl in labels]
        resolved: list[int] = []
        for ch in channels:
            if isinstance(ch, (bool, np.bool_)):
                raise ChannelNotFound(f"Channel selector must be a label or an index, got {ch!r}.")
            if isinstance(ch, (int, np.integer)):
                idx = int(ch)
                if not 0 <= idx < len(labels):
                    raise ChannelNotFound(
                        f"Channel index {idx} out of range [0, {len(labels) - 1}]."
                    )
            elif isinstance(ch, str):
                if ch in labels:
                    idx = labels.index(ch)
                elif lowered.count(ch.lower()) == 1:
                    idx = lowered.index(ch.lower())
                else:
                    raise ChannelNotFound(f"Channel '{ch}' not found.")
            else:
                raise ChannelNotFound(f"Channel selector must be a label or an index, got {ch!r}.")
            if idx not in resolved:
                resolved.append(idx)
        return resolved

    def epoch_index(self, epochs: EpochSelector) -> list[int]:
        if isinstance(epochs, (int, np.integer)) or not isinstance(epochs, Iterable):
            epochs = [epochs]
        resolved: list[int] = []
        for ep in epochs:
            if isinstance(ep, (bool, np.bool_)) or not isinstance(ep, (int, np.integer)):
                raise EpochNotFound(f"Epoch selector must be an integer index, got {ep!r}.")
            idx = int(ep)
            if not 0 <= idx < self.epoch_count:
                raise EpochNotFound(f"Epoch index {idx} out of range [0, {self.epoch_count - 1}].")
            if idx not in resolved:
                resolved.append(idx)
        return resolved

    def view(self, channels: ChannelSelector | slice | None = None, epochs: EpochSelector | slice | None = None) -> np.ndarray:
        """
        Read-only [channels, samples, epochs] view of the signal.

        Slices give a true view of the tensor; label/index lists give a
        read-only copy.
        """
        ch = slice(None) if channels is None else channels
        ep = slice(None) if epochs is None else epochs
        if not isinstance(ch, slice):
            ch = self.channel_index(ch)
        if not isinstance(ep, slice):
            ep = self.epoch_index(ep)

        if isinstance(ch, slice) and isinstance(ep, slice):
            out = self.data[ch, :, ep]
        else:
            out = self.data[ch, :, :][:, :, ep]
        out = out.view()
        out.flags.writeable = False
        return out

    # ---- dict-like API over channels ----
    def __len__(self) -> int:
        return self.channel_count

    def __iter__(self) -> Iterator[str]:
        return iter(self.labels)

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and label in self.labels

    def __getitem__(self, channel: int | str) -> np.ndarray:
        idx = self.channel_index(channel)[0]
        return self.view(slice(idx, idx + 1))[0]

    # ---- components ----
    def add_component(
        self,
        name: str,
        value: Any,
        *,
        axes: Iterable[str] | None = None,
        inplace: bool = False,
    ) -> "Recording":
        comp = Component.infer(name, value, axes)
        comp.check_shape(self.channel_count, self.epoch_length, self.epoch_count)
        result = self.evolve(components=self.components.with_component(comp))
        return commit(self, result, inplace)

    def get_component(self, name: str) -> Any:
        return self.components[name].value

    def delete_component(self, name: str, *, inplace: bool = False) -> "Recording":
        result = self.evolve(components=self.components.without(name))
        return commit(self, result, inplace)

    def reset_components(self, *, inplace: bool = False) -> "Recording":
        result = self.evolve(components=Components())
        return commit(self, result, inplace)

    # ---- equality ----
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Recording):
            return NotImplemented
        return (
            self.header == other.header
            and _arrays_equal(self.time_pts, other.time_pts)
            and _arrays_equal(self.epoch_time, other.epoch_time)
            and self.data.dtype == other.data.dtype
            and _arrays_equal(self.data, other.data)
            and self.components == other.components
            and self.markers == other.markers
            and self.locations == other.locations
        )

    __hash__ = None  # type: ignore[assignment]


def _arrays_equal(a: np.ndarray, b: np.ndarray) -> bool:
    if a.shape != b.shape:
        return False
    equal_nan = np.issubdtype(a.dtype, np.inexact) and np.issubdtype(b.dtype, np.inexact)
    return bool(np.array_equal(a, b, equal_nan=equal_nan))


def commit(target: Recording, result: Recording, inplace: bool) -> Recording:
    """
    Return `result`, or swap its fields into `target` when `inplace` is set.

    `result` is fully validated before the swap, so the caller's object is
    either left untouched (on error) or replaced as a whole.
    """
    if not inplace:
        return result
    for f in fields(Recording):
        setattr(target, f.name, getattr(result, f.name))
    return target


def operation(name: str, /, **kwargs: Any) -> str:
    """History entry for an edit, e.g. "delete_channel(OBJ, ch=[19, 20])"."""
    args = ", ".join(f"{k}={v!r}" for k, v in kwargs.items())
    return f"{name}(OBJ, {args})" if args else f"{name}(OBJ)"
