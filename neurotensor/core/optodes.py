# neurotensor/core/optodes.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .exceptions import InvalidArgument


@dataclass(frozen=True, slots=True)
class OptodePair:
    channel: str       # measurement channel label, e.g. "S1_D1 760"
    source: str        # source optode label, e.g. "S1"
    detector: str      # detector optode label, e.g. "D1"


@dataclass(frozen=True, slots=True)
class OptodePairing:
    """
    Bidirectional relation between NIRS measurement channels and optodes.

    Every paired channel is measured between one source and one detector;
    an optode may take part in many channels. Both directions are answered
    from the same pair list, so the relation cannot drift out of sync.
    """
    optodes: tuple[str, ...] = ()
    pairs: tuple[OptodePair, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "optodes", tuple(self.optodes))
        object.__setattr__(self, "pairs", tuple(self.pairs))

        if len(set(self.optodes)) != len(self.optodes):
            raise InvalidArgument("Optode labels must be unique.")
        known = set(self.optodes)
        seen: set[str] = set()
        for p in self.pairs:
            if p.source not in known or p.detector not in known:
                raise InvalidArgument(
                    f"Channel '{p.channel}' pairs unknown optodes ({p.source}, {p.detector})."
                )
            if p.channel in seen:
                raise InvalidArgument(f"Channel '{p.channel}' is paired more than once.")
            seen.add(p.channel)

    @property
    def channels(self) -> tuple[str, ...]:
        return tuple(p.channel for p in self.pairs)

    def is_paired(self, channel: str) -> bool:
        return any(p.channel == channel for p in self.pairs)

    def optodes_of(self, channel: str) -> tuple[str, str]:
        for p in self.pairs:
            if p.channel == channel:
                return p.source, p.detector
        raise InvalidArgument(f"Channel '{channel}' is not paired to any optode.")

    def channels_of(self, optode: str) -> tuple[str, ...]:
        if optode not in self.optodes:
            raise InvalidArgument(f"Unknown optode '{optode}'.")
        return tuple(p.channel for p in self.pairs if optode in (p.source, p.detector))

    def validate(self, channel_labels: Iterable[str]) -> None:
        known = set(channel_labels)
        dangling = [c for c in self.channels if c not in known]
        if dangling:
            raise InvalidArgument(f"Optode pairing references missing channel(s): {dangling}")

    # ---- transformations ----
    def without_channels(self, channels: Iterable[str]) -> "OptodePairing":
        drop = set(channels)
        return OptodePairing(self.optodes, tuple(p for p in self.pairs if p.channel not in drop))

    def without_optode(self, optode: str) -> "OptodePairing":
        if optode not in self.optodes:
            raise InvalidArgument(f"Unknown optode '{optode}'.")
        return OptodePairing(
            tuple(o for o in self.optodes if o != optode),
            tuple(p for p in self.pairs if optode not in (p.source, p.detector)),
        )

    def rename_channel(self, old: str, new: str) -> "OptodePairing":
        return OptodePairing(
            self.optodes,
            tuple(OptodePair(new, p.source, p.detector) if p.channel == old else p for p in self.pairs),
        )

    # ---- serialization ----
    def to_dict(self) -> dict[str, Any]:
        return {
            "optodes": list(self.optodes),
            "pairs": [[p.channel, p.source, p.detector] for p in self.pairs],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "OptodePairing":
        return cls(tuple(d["optodes"]), tuple(OptodePair(*p) for p in d["pairs"]))
