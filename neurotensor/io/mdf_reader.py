# neurotensor/io/mdf_reader.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Protocol

from asammdf import MDF  # MDF 3/4 measurement files
import numpy as np

from neurotensor.core import ChannelNotFound, InvalidArgument


@dataclass
class RawChannelInfo:
    """
    Metadata + lazy loader for one MDF channel.

    The loader reads ONLY this channel and returns (timestamps, samples).
    """

    name: str
    unit: str
    group_index: int           # group id inside the MDF
    channel_index: int         # channel id inside the group
    loader: Callable[[], tuple[np.ndarray, np.ndarray]]

    def load(self) -> tuple[np.ndarray, np.ndarray]:
        t, v = self.loader()
        return np.asarray(t, dtype=float), np.asarray(v)


@dataclass
class RawChannelData:
    time: np.ndarray
    values: np.ndarray
    unit: str


class MdfReader(Protocol):
    """Protocol for MDF readers: a flat, name-addressable view of the signal channels."""

    def list_channels(self) -> List[RawChannelInfo]:
        ...

    def read_channels(self, channel_names: Iterable[str]) -> dict[str, RawChannelData]:
        ...


class AsammdfReader:
    """
    MdfReader implementation on top of asammdf.MDF.

    Master (time) channels are skipped; when the same channel name occurs
    in several groups the first occurrence wins.
    """

    def __init__(self, path: str):
        self._mdf = MDF(path)
        self._index: dict[str, RawChannelInfo] = {}
        self._build_index()

    def close(self) -> None:
        self._mdf.close()

    def __enter__(self) -> "AsammdfReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Index construction
    # ------------------------------------------------------------------
    def _build_index(self) -> None:
        masters = getattr(self._mdf, "masters_db", {})

        for group_index, group in enumerate(self._mdf.groups):
            for channel_index, channel in enumerate(group.channels):
                if masters.get(group_index) == channel_index:
                    continue
                if channel.name in self._index:
                    continue

                def make_loader(g_i: int = group_index, c_i: int = channel_index):
                    def _loader() -> tuple[np.ndarray, np.ndarray]:
                        sig = self._mdf.get(group=g_i, index=c_i)
                        return sig.timestamps, sig.samples

                    return _loader

                self._index[channel.name] = RawChannelInfo(
                    name=channel.name,
                    unit=channel.unit or "",
                    group_index=group_index,
                    channel_index=channel_index,
                    loader=make_loader(),
                )

    # ------------------------------------------------------------------
    # MdfReader protocol implementation
    # ------------------------------------------------------------------
    def list_channels(self) -> List[RawChannelInfo]:
        return list(self._index.values())

    def read_channels(self, channel_names: Iterable[str]) -> dict[str, RawChannelData]:
        result: dict[str, RawChannelData] = {}
        for name in channel_names:
            if name not in self._index:
                raise ChannelNotFound(f"Channel '{name}' not found in MDF.")
            info = self._index[name]
            t, v = info.load()
            result[name] = RawChannelData(time=t, values=v, unit=info.unit)
        return result


def resample_onto(raster: np.ndarray, data: RawChannelData) -> np.ndarray:
    """Linear interpolation of a channel onto the `raster` timestamps."""
    values = np.asarray(data.values)
    if not np.issubdtype(values.dtype, np.number):
        raise InvalidArgument(f"MDF channel has non-numeric samples (dtype {values.dtype}).")
    if values.ndim != 1:
        raise InvalidArgument(f"MDF channel samples must be 1D, got shape {values.shape}.")
    if data.time.shape == raster.shape and np.array_equal(data.time, raster):
        return values.astype(float)
    return np.interp(raster, data.time, values.astype(float))
