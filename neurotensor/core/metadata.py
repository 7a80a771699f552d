# neurotensor/core/metadata.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Sequence

import numpy as np

from .channel import ChannelInfo, DataType
from .exceptions import InvalidArgument
from .optodes import OptodePairing


@dataclass(frozen=True, slots=True)
class SubjectInfo:
    """
    Who was recorded.

    Keep it lightweight and extensible:
    - id: study-specific subject code
    - name: optional full name
    - handedness: left / right / ambidextrous
    - attrs: arbitrary additional fields (age, weight, ...)
    """
    id: str = ""
    name: str = ""
    handedness: str = ""
    attrs: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.attrs is None:
            object.__setattr__(self, "attrs", {})
        elif not isinstance(self.attrs, dict):
            raise InvalidArgument("SubjectInfo.attrs must be a dict.")


@dataclass(frozen=True, slots=True)
class ExperimentInfo:
    """
    What the recording was part of.
    """
    name: str = ""
    design: str = ""
    notes: str = ""
    attrs: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.attrs is None:
            object.__setattr__(self, "attrs", {})
        elif not isinstance(self.attrs, dict):
            raise InvalidArgument("ExperimentInfo.attrs must be a dict.")


@dataclass(frozen=True, slots=True)
class RecordingInfo:
    """
    How the signal was recorded, including the per-channel arrays.

    `channels` and the rows of `bad_channels` are ordered like the channel
    axis of the signal tensor; `bad_channels` is a channels x epochs grid of
    flags stored as nested tuples so the whole header stays immutable.
    """
    sampling_rate: float
    channels: tuple[ChannelInfo, ...]
    bad_channels: tuple[tuple[bool, ...], ...] = ()
    data_type: DataType = DataType.EEG
    reference: str = ""
    file_name: str = ""
    file_type: str = ""
    recording: str = ""
    recording_date: str = ""
    recording_time: str = ""
    recording_notes: str = ""
    optode_pairing: OptodePairing | None = None
    attrs: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_type", DataType(self.data_type))
        object.__setattr__(self, "channels", tuple(self.channels))
        object.__setattr__(
            self, "bad_channels", tuple(tuple(bool(f) for f in row) for row in self.bad_channels)
        )

        if not np.isfinite(self.sampling_rate) or self.sampling_rate <= 0:
            raise InvalidArgument(f"sampling_rate must be positive, got {self.sampling_rate}.")
        if not all(isinstance(c, ChannelInfo) for c in self.channels):
            raise InvalidArgument("RecordingInfo.channels must contain ChannelInfo instances.")
        if self.bad_channels and len(self.bad_channels) != len(self.channels):
            raise InvalidArgument(
                f"bad_channels has {len(self.bad_channels)} rows for {len(self.channels)} channels."
            )
        if len({len(row) for row in self.bad_channels}) > 1:
            raise InvalidArgument("bad_channels rows must all have one flag per epoch.")

        lowered = [lbl.lower() for lbl in self.labels]
        if len(set(lowered)) != len(lowered):
            dup = sorted({lbl for lbl in self.labels if lowered.count(lbl.lower()) > 1})
            raise InvalidArgument(f"Channel labels must be unique, duplicates: {dup}")

        if self.attrs is None:
            object.__setattr__(self, "attrs", {})
        elif not isinstance(self.attrs, dict):
            raise InvalidArgument("RecordingInfo.attrs must be a dict.")

    # ---- per-channel arrays ----
    @property
    def labels(self) -> list[str]:
        return [c.label for c in self.channels]

    @property
    def channel_types(self) -> list[str]:
        return [c.channel_type for c in self.channels]

    @property
    def units(self) -> list[str]:
        return [c.unit for c in self.channels]

    @property
    def prefiltering(self) -> list[str]:
        return [c.prefiltering for c in self.channels]

    @property
    def bad_channel_matrix(self) -> np.ndarray:
        return np.array(self.bad_channels, dtype=bool).reshape(len(self.channels), -1)

    def with_channels(
        self,
        channels: Sequence[ChannelInfo],
        bad_channels: np.ndarray | Sequence[Sequence[bool]],
        optode_pairing: OptodePairing | None = None,
    ) -> "RecordingInfo":
        bad = np.asarray(bad_channels, dtype=bool)
        return replace(
            self,
            channels=tuple(channels),
            bad_channels=tuple(tuple(row) for row in bad.tolist()),
            optode_pairing=self.optode_pairing if optode_pairing is None else optode_pairing,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sampling_rate": self.sampling_rate,
            "channels": [c.to_dict() for c in self.channels],
            "bad_channels": [list(row) for row in self.bad_channels],
            "data_type": self.data_type.value,
            "reference": self.reference,
            "file_name": self.file_name,
            "file_type": self.file_type,
            "recording": self.recording,
            "recording_date": self.recording_date,
            "recording_time": self.recording_time,
            "recording_notes": self.recording_notes,
            "optode_pairing": None if self.optode_pairing is None else self.optode_pairing.to_dict(),
            "attrs": self.attrs,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "RecordingInfo":
        d = dict(d)
        d["channels"] = tuple(ChannelInfo.from_dict(c) for c in d["channels"])
        if d.get("optode_pairing") is not None:
            d["optode_pairing"] = OptodePairing.from_dict(d["optode_pairing"])
        return cls(**d)


@dataclass(frozen=True, slots=True)
class Header:
    """
    Recording header: subject, recording and experiment info plus the
    append-only history of operations applied to the signal.
    """
    recording: RecordingInfo
    subject: SubjectInfo = field(default_factory=SubjectInfo)
    experiment: ExperimentInfo = field(default_factory=ExperimentInfo)
    history: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.recording, RecordingInfo):
            raise InvalidArgument("Header.recording must be a RecordingInfo instance.")
        if not isinstance(self.subject, SubjectInfo):
            raise InvalidArgument("Header.subject must be a SubjectInfo instance.")
        if not isinstance(self.experiment, ExperimentInfo):
            raise InvalidArgument("Header.experiment must be an ExperimentInfo instance.")
        object.__setattr__(self, "history", tuple(self.history))

    def with_history(self, entry: str) -> "Header":
        return replace(self, history=self.history + (entry,))

    def with_recording(self, **changes: Any) -> "Header":
        return replace(self, recording=replace(self.recording, **changes))

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": {
                "id": self.subject.id,
                "name": self.subject.name,
                "handedness": self.subject.handedness,
                "attrs": self.subject.attrs,
            },
            "recording": self.recording.to_dict(),
            "experiment": {
                "name": self.experiment.name,
                "design": self.experiment.design,
                "notes": self.experiment.notes,
                "attrs": self.experiment.attrs,
            },
            "history": list(self.history),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Header":
        return cls(
            recording=RecordingInfo.from_dict(d["recording"]),
            subject=SubjectInfo(**d.get("subject", {})),
            experiment=ExperimentInfo(**d.get("experiment", {})),
            history=tuple(d.get("history", ())),
        )
