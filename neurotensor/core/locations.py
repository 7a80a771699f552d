# neurotensor/core/locations.py
from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from .exceptions import InvalidArgument, PreconditionFailed


LOCATION_COLUMNS: tuple[str, ...] = (
    "channel",
    "label",
    "loc_theta",
    "loc_radius",
    "loc_x",
    "loc_y",
    "loc_z",
    "loc_radius_sph",
    "loc_theta_sph",
    "loc_phi_sph",
)

_FLOAT_COLUMNS = LOCATION_COLUMNS[2:]


# ---- coordinate conversions (angles in degrees) ----
def pol2cart(theta, radius) -> tuple[np.ndarray, np.ndarray]:
    t = np.deg2rad(np.asarray(theta, dtype=float))
    r = np.asarray(radius, dtype=float)
    return r * np.cos(t), r * np.sin(t)


def cart2pol(x, y) -> tuple[np.ndarray, np.ndarray]:
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    return np.rad2deg(np.arctan2(y, x)), np.hypot(x, y)


def sph2cart(radius, theta, phi) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    r = np.asarray(radius, dtype=float)
    t = np.deg2rad(np.asarray(theta, dtype=float))
    p = np.deg2rad(np.asarray(phi, dtype=float))
    return r * np.cos(p) * np.cos(t), r * np.cos(p) * np.sin(t), r * np.sin(p)


def cart2sph(x, y, z) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    z = np.asarray(z, dtype=float)
    r = np.sqrt(x**2 + y**2 + z**2)
    theta = np.rad2deg(np.arctan2(y, x))
    phi = np.rad2deg(np.arctan2(z, np.hypot(x, y)))
    return r, theta, phi


class LocationTable:
    """
    Electrode locations keyed by channel label.

    Each row holds the channel index, the label, planar polar coordinates
    (loc_theta, loc_radius), cartesian coordinates (loc_x, loc_y, loc_z) and
    spherical coordinates (loc_radius_sph, loc_theta_sph, loc_phi_sph).
    Label matching is case-insensitive.
    """

    __slots__ = ("_frame",)

    def __init__(self, frame: pd.DataFrame | None = None) -> None:
        if frame is None:
            frame = pd.DataFrame(
                {
                    "channel": pd.Series(dtype=np.int64),
                    "label": pd.Series(dtype=object),
                    **{c: pd.Series(dtype=float) for c in _FLOAT_COLUMNS},
                }
            )

        missing = [c for c in LOCATION_COLUMNS if c not in frame.columns]
        if missing:
            raise InvalidArgument(f"Location table is missing columns: {missing}")

        frame = frame.loc[:, list(LOCATION_COLUMNS)].copy()
        frame["channel"] = frame["channel"].astype(np.int64)
        frame["label"] = frame["label"].astype(str).astype(object)
        for col in _FLOAT_COLUMNS:
            frame[col] = frame[col].astype(float)

        lowered = frame["label"].str.lower()
        if lowered.duplicated().any():
            dup = sorted(set(frame["label"][lowered.duplicated()]))
            raise InvalidArgument(f"Duplicate location labels: {dup}")
        self._frame = frame.reset_index(drop=True)

    @classmethod
    def from_coordinates(
        cls,
        labels: Sequence[str],
        *,
        x=None,
        y=None,
        z=None,
        theta=None,
        radius=None,
    ) -> "LocationTable":
        """
        Build a table from cartesian (x, y[, z]) or planar polar (theta, radius)
        coordinates; the missing coordinate systems are derived.
        """
        n = len(labels)
        if x is not None and y is not None:
            x = np.asarray(x, dtype=float)
            y = np.asarray(y, dtype=float)
            z = np.zeros(n) if z is None else np.asarray(z, dtype=float)
            theta, radius = cart2pol(x, y)
        elif theta is not None and radius is not None:
            theta = np.asarray(theta, dtype=float)
            radius = np.asarray(radius, dtype=float)
            x, y = pol2cart(theta, radius)
            z = np.zeros(n) if z is None else np.asarray(z, dtype=float)
        else:
            raise InvalidArgument("Either (x, y) or (theta, radius) coordinates are required.")

        r_sph, t_sph, p_sph = cart2sph(x, y, z)
        frame = pd.DataFrame(
            {
                "channel": np.arange(n, dtype=np.int64),
                "label": list(labels),
                "loc_theta": theta,
                "loc_radius": radius,
                "loc_x": x,
                "loc_y": y,
                "loc_z": z,
                "loc_radius_sph": r_sph,
                "loc_theta_sph": t_sph,
                "loc_phi_sph": p_sph,
            }
        )
        return cls(frame)

    # ---- read access ----
    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def labels(self) -> list[str]:
        return list(self._frame["label"])

    def __len__(self) -> int:
        return len(self._frame)

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and label.lower() in set(self._frame["label"].str.lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocationTable):
            return NotImplemented
        return self._frame.equals(other._frame)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"LocationTable(n={len(self)})"

    def _row(self, label: str) -> int | None:
        hits = np.flatnonzero(self._frame["label"].str.lower().to_numpy() == label.lower())
        return int(hits[0]) if hits.size else None

    def planar(self, labels: Iterable[str]) -> np.ndarray:
        """[n, 2] array of (loc_x, loc_y) for `labels`, in the given order."""
        rows = []
        missing = []
        for label in labels:
            i = self._row(label)
            if i is None:
                missing.append(label)
            else:
                rows.append(i)
        if missing:
            raise PreconditionFailed(f"No electrode location for channel(s): {missing}")
        return self._frame.loc[rows, ["loc_x", "loc_y"]].to_numpy(dtype=float)

    def validate(self, channel_labels: Sequence[str]) -> None:
        known = {lbl.lower() for lbl in channel_labels}
        unknown = [lbl for lbl in self._frame["label"] if lbl.lower() not in known]
        if unknown:
            raise InvalidArgument(f"Locations reference unknown channel label(s): {unknown}")

    # ---- transformations ----
    def match(self, channel_labels: Sequence[str]) -> "LocationTable":
        """Keep rows whose label names a channel; order and number them like the channels."""
        rows = []
        channels = []
        for idx, label in enumerate(channel_labels):
            i = self._row(label)
            if i is not None:
                rows.append(i)
                channels.append(idx)
        frame = self._frame.loc[rows].copy()
        frame["channel"] = np.asarray(channels, dtype=np.int64)
        frame["label"] = [channel_labels[c] for c in channels]
        return LocationTable(frame)

    def delete_label(self, label: str) -> "LocationTable":
        i = self._row(label)
        if i is None:
            return self
        return LocationTable(self._frame.drop(index=i))

    def rename_label(self, old: str, new: str) -> "LocationTable":
        i = self._row(old)
        if i is None:
            return self
        frame = self._frame.copy()
        frame.loc[i, "label"] = new
        return LocationTable(frame)

    def renumber(self, channel_labels: Sequence[str]) -> "LocationTable":
        """Refresh the channel column after the channel order changed."""
        lookup = {lbl.lower(): idx for idx, lbl in enumerate(channel_labels)}
        frame = self._frame.copy()
        frame["channel"] = [lookup[lbl.lower()] for lbl in frame["label"]]
        return LocationTable(frame)

    def normalize(self) -> "LocationTable":
        """Scale planar and cartesian coordinates to the unit circle/sphere."""
        frame = self._frame.copy()
        rmax = float(np.nanmax(np.abs(frame["loc_radius"]))) if len(frame) else 0.0
        if rmax > 0:
            frame["loc_radius"] = frame["loc_radius"] / rmax
        cmax = float(np.nanmax(np.abs(frame[["loc_x", "loc_y", "loc_z"]].to_numpy()))) if len(frame) else 0.0
        if cmax > 0:
            for col in ("loc_x", "loc_y", "loc_z"):
                frame[col] = frame[col] / cmax
            frame["loc_radius_sph"] = frame["loc_radius_sph"] / cmax
        return LocationTable(frame)

    # ---- serialization ----
    def to_records(self) -> list[list]:
        return [
            [int(row[0]), str(row[1]), *(float(v) for v in row[2:])]
            for row in self._frame.itertuples(index=False)
        ]

    @classmethod
    def from_list(cls, rows: list[list]) -> "LocationTable":
        if not rows:
            return cls()
        return cls(pd.DataFrame(rows, columns=list(LOCATION_COLUMNS)))
