# neurotensor/core/markers.py
from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping

import numpy as np
import pandas as pd

from .exceptions import InvalidArgument


MARKER_COLUMNS: tuple[str, ...] = ("id", "start", "length", "description", "channel")
GLOBAL_CHANNEL = -1

_DTYPES = {
    "id": object,
    "start": np.int64,
    "length": np.int64,
    "description": object,
    "channel": np.int64,
}


class MarkerTable:
    """
    Ordered table of event markers in absolute sample time.

    Columns:
    - id: marker code (string)
    - start: 0-based absolute sample index
    - length: duration in samples (0 for point events)
    - description: free text
    - channel: 0-based channel index, GLOBAL_CHANNEL (-1) for markers not tied to a channel

    Instances are treated as immutable: every transformation returns a new table.
    """

    __slots__ = ("_frame",)

    def __init__(self, frame: pd.DataFrame | Iterable[Mapping[str, Any]] | None = None) -> None:
        if frame is None:
            frame = pd.DataFrame({c: pd.Series(dtype=_DTYPES[c]) for c in MARKER_COLUMNS})
        elif not isinstance(frame, pd.DataFrame):
            frame = pd.DataFrame(list(frame), columns=list(MARKER_COLUMNS))

        missing = [c for c in MARKER_COLUMNS if c not in frame.columns]
        if missing:
            raise InvalidArgument(f"Marker table is missing columns: {missing}")

        frame = frame.loc[:, list(MARKER_COLUMNS)].copy()
        frame["id"] = frame["id"].astype(str).astype(object)
        frame["description"] = frame["description"].astype(str).astype(object)
        for col in ("start", "length", "channel"):
            frame[col] = frame[col].astype(np.int64)
        if (frame["length"] < 0).any():
            raise InvalidArgument("Marker length must be >= 0.")
        self._frame = frame.reset_index(drop=True)

    @classmethod
    def from_records(cls, records: Iterable[tuple[str, int, int, str, int]]) -> "MarkerTable":
        rows = [dict(zip(MARKER_COLUMNS, r)) for r in records]
        if not rows:
            return cls()
        return cls(pd.DataFrame(rows, columns=list(MARKER_COLUMNS)))

    # ---- read access ----
    @property
    def frame(self) -> pd.DataFrame:
        """A copy of the underlying DataFrame."""
        return self._frame.copy()

    @property
    def starts(self) -> np.ndarray:
        return self._frame["start"].to_numpy(copy=True)

    def __len__(self) -> int:
        return len(self._frame)

    def __iter__(self) -> Iterator[tuple[str, int, int, str, int]]:
        for row in self._frame.itertuples(index=False):
            yield (row.id, int(row.start), int(row.length), row.description, int(row.channel))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MarkerTable):
            return NotImplemented
        return self._frame.equals(other._frame)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MarkerTable(n={len(self)})"

    def validate(self, signal_length: int, channel_count: int) -> None:
        if len(self) == 0:
            return
        starts = self._frame["start"]
        if (starts < 0).any() or (starts >= signal_length).any():
            raise InvalidArgument(
                f"Marker start must lie within [0, {signal_length - 1}]."
            )
        ch = self._frame["channel"]
        if ((ch < GLOBAL_CHANNEL) | (ch >= channel_count)).any():
            raise InvalidArgument(
                f"Marker channel must be {GLOBAL_CHANNEL} or within [0, {channel_count - 1}]."
            )

    # ---- transformations ----
    def add(
        self,
        marker_id: str,
        start: int,
        length: int = 0,
        description: str = "",
        channel: int = GLOBAL_CHANNEL,
    ) -> "MarkerTable":
        row = pd.DataFrame([{"id": marker_id, "start": start, "length": length, "description": description, "channel": channel}])
        frame = pd.concat([self._frame, row], ignore_index=True) if len(self) else row
        return MarkerTable(frame.sort_values("start", kind="stable"))

    def delete_within(self, first: int, last: int) -> "MarkerTable":
        """Drop markers whose start falls inside [first, last]."""
        s = self._frame["start"]
        return MarkerTable(self._frame[~((s >= first) & (s <= last))])

    def shift_after(self, last: int, by: int) -> "MarkerTable":
        """Move every marker starting after `last` backward by `by` samples."""
        frame = self._frame.copy()
        after = frame["start"] > last
        frame.loc[after, "start"] = frame.loc[after, "start"] - by
        return MarkerTable(frame)

    def truncate(self, signal_length: int) -> "MarkerTable":
        """Drop markers starting at or beyond `signal_length`."""
        return MarkerTable(self._frame[self._frame["start"] < signal_length])

    def window(self, first: int, last: int) -> "MarkerTable":
        """Markers starting inside [first, last], re-based to start at 0."""
        s = self._frame["start"]
        frame = self._frame[(s >= first) & (s <= last)].copy()
        frame["start"] = frame["start"] - first
        return MarkerTable(frame)

    def delete_channel(self, index: int) -> "MarkerTable":
        """Drop markers attached to channel `index`; shift later channel references down."""
        frame = self._frame[self._frame["channel"] != index].copy()
        later = frame["channel"] > index
        frame.loc[later, "channel"] = frame.loc[later, "channel"] - 1
        return MarkerTable(frame)

    def insert_channel(self, index: int) -> "MarkerTable":
        """Make room for a channel inserted at `index`."""
        frame = self._frame.copy()
        later = frame["channel"] >= index
        frame.loc[later, "channel"] = frame.loc[later, "channel"] + 1
        return MarkerTable(frame)

    # ---- serialization ----
    def to_records(self) -> list[list[Any]]:
        return [list(r) for r in self]

    @classmethod
    def from_list(cls, rows: list[list[Any]]) -> "MarkerTable":
        return cls.from_records(tuple(r) for r in rows)
