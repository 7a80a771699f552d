# neurotensor/core/channel.py

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import re
from typing import Any

from .exceptions import InvalidArgument


CHANNEL_TYPES: tuple[str, ...] = (
    "eeg",
    "meg",
    "mag",
    "grad",
    "nirs_int",
    "nirs_od",
    "nirs_hbo",
    "nirs_hbr",
    "nirs_aux",
    "ecg",
    "eog",
    "emg",
    "ref",
    "mrk",
    "other",
)


class DataType(str, Enum):
    """Kind of recording; decides which channel types carry signal."""

    EEG = "eeg"
    MEG = "meg"
    NIRS = "nirs"

    @property
    def signal_types(self) -> frozenset[str]:
        return _SIGNAL_TYPES[self]


_SIGNAL_TYPES = {
    DataType.EEG: frozenset({"eeg"}),
    DataType.MEG: frozenset({"meg", "mag", "grad"}),
    DataType.NIRS: frozenset({"nirs_int", "nirs_od", "nirs_hbo", "nirs_hbr"}),
}


class Region(str, Enum):
    """Scalp regions addressable through 10-20 label conventions."""

    CENTRAL = "central"      # midline electrodes (Fz, Cz, Pz, ...)
    LEFT = "left"
    RIGHT = "right"
    FRONTAL = "frontal"
    TEMPORAL = "temporal"
    PARIETAL = "parietal"
    OCCIPITAL = "occipital"


@dataclass(frozen=True, slots=True)
class ChannelInfo:
    """
    Descriptor of one recorded channel.

    One row of the per-channel header arrays:
    - label: unique channel name (Fp1, Cz, S1_D2 760, ...)
    - channel_type: one of CHANNEL_TYPES
    - unit: physical unit (uV, V, fT, ...)
    - prefiltering: filters applied by the acquisition system
    - transducer, gain: acquisition details
    - wavelength: NIRS wavelength in nm (None for other modalities)
    """
    label: str
    channel_type: str = "other"
    unit: str = ""
    prefiltering: str = ""
    transducer: str = ""
    gain: float = 1.0
    wavelength: float | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.label, str) or not self.label.strip():
            raise InvalidArgument("ChannelInfo.label must be a non-empty string.")
        if self.channel_type not in CHANNEL_TYPES:
            raise InvalidArgument(
                f"ChannelInfo.channel_type must be one of {CHANNEL_TYPES}, got '{self.channel_type}'."
            )

    def rename(self, label: str) -> "ChannelInfo":
        return replace(self, label=label)

    def with_type(self, channel_type: str) -> "ChannelInfo":
        return replace(self, channel_type=channel_type)

    def with_unit(self, unit: str) -> "ChannelInfo":
        return replace(self, unit=unit)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "channel_type": self.channel_type,
            "unit": self.unit,
            "prefiltering": self.prefiltering,
            "transducer": self.transducer,
            "gain": self.gain,
            "wavelength": self.wavelength,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ChannelInfo":
        return cls(**d)


# ---- label conventions ----
_EEG_RE = re.compile(r"^(fp|af|f|fc|ft|c|cp|tp|t|p|po|o|i|n)(z|\d{1,2})$", re.IGNORECASE)
_REF_LABELS = {"a1", "a2", "m1", "m2"}
_MRK_LABELS = {"mrk", "status", "trigger", "stim"}


def clean_label(label: str) -> str:
    """Strip vendor prefixes and padding (e.g. 'EEG Fp1-REF' -> 'Fp1')."""
    label = label.strip()
    if label.upper().startswith("EEG "):
        label = label[4:]
    label = re.sub(r"-(REF|LE|AR)$", "", label, flags=re.IGNORECASE)
    return label.strip()


def detect_channel_type(label: str) -> str:
    """Infer a channel type from its label."""
    name = label.strip().lower()
    if name in _REF_LABELS:
        return "ref"
    if _EEG_RE.match(name):
        return "eeg"
    if name.startswith("eog"):
        return "eog"
    if name.startswith("ecg") or name.startswith("ekg"):
        return "ecg"
    if name.startswith("emg"):
        return "emg"
    if name in _MRK_LABELS:
        return "mrk"
    return "other"


def laterality(label: str) -> Region:
    """LEFT for odd-numbered, RIGHT for even-numbered, CENTRAL otherwise."""
    name = label.strip()
    if name and name[-1].isdigit():
        return Region.LEFT if int(name[-1]) % 2 == 1 else Region.RIGHT
    return Region.CENTRAL


def in_region(label: str, region: Region) -> bool:
    name = label.strip()
    if region in (Region.CENTRAL, Region.LEFT, Region.RIGHT):
        if region is Region.CENTRAL:
            return name.lower().endswith("z")
        return laterality(name) is region

    # Fp is frontopolar, not parietal
    prefix = re.sub(r"(z|\d+)$", "", name, flags=re.IGNORECASE).upper().replace("FP", "Fp")
    letter = {
        Region.FRONTAL: "F",
        Region.TEMPORAL: "T",
        Region.PARIETAL: "P",
        Region.OCCIPITAL: "O",
    }[region]
    return letter in prefix
