# neurotensor/io/load.py
from __future__ import annotations

import json
import logging
from numbers import Number
from pathlib import Path
from typing import Any, Iterable

import numpy as np

from neurotensor.config import IOConfig
from neurotensor.core import (
    Component,
    ComponentKind,
    Components,
    Header,
    InvalidArgument,
    LocationTable,
    MarkerTable,
    Recording,
    clean_label,
)
from neurotensor.core.timeaxis import estimate_sampling_rate
from neurotensor.io.csv_io import import_csv
from neurotensor.io.mdf_reader import AsammdfReader, resample_onto


logger = logging.getLogger(__name__)

FORMAT = "neurotensor"
FORMAT_VERSION = 1
_COMPONENT_PREFIX = "component__"


# ---- persistence ----
def save(rec: Recording, path: str | Path, *, overwrite: bool | None = None, config: IOConfig | None = None) -> Path:
    """
    Write the whole recording to a single compressed .npz archive.

    Arrays (signal, time axes, array components) are stored natively; the
    header, markers, locations and non-array components go into one JSON
    document stored alongside them.
    """
    config = config or IOConfig()
    overwrite = config.overwrite if overwrite is None else overwrite
    path = Path(path)
    if path.suffix != ".npz":
        raise InvalidArgument(f"File {path} must have the .npz extension.")
    if path.exists() and not overwrite:
        raise InvalidArgument(f"File {path} cannot be saved, to overwrite use overwrite=True.")

    arrays: dict[str, np.ndarray] = {
        "data": rec.data,
        "time_pts": rec.time_pts,
        "epoch_time": rec.epoch_time,
    }
    components = []
    for name, comp in rec.components.items():
        entry: dict[str, Any] = {"name": name, "kind": comp.kind.value, "axes": list(comp.axes)}
        if comp.kind is ComponentKind.ARRAY:
            arrays[f"{_COMPONENT_PREFIX}{len(components)}"] = comp.value
        elif comp.kind is ComponentKind.SCALAR:
            entry["value"] = _scalar_to_json(comp.value)
        else:
            entry["value"] = list(comp.value)
        components.append(entry)

    meta = {
        "format": FORMAT,
        "version": FORMAT_VERSION,
        "header": rec.header.to_dict(),
        "markers": rec.markers.to_records(),
        "locations": rec.locations.to_records(),
        "components": components,
    }
    try:
        arrays["meta"] = np.array(json.dumps(meta))
    except TypeError as e:
        raise InvalidArgument(f"Recording metadata cannot be serialized: {e}") from e

    np.savez_compressed(path, **arrays)
    logger.debug("save: %s -> %s", rec.summary(), path)
    return path


def load(path: str | Path) -> Recording:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File {path} cannot be loaded.")

    with np.load(path, allow_pickle=False) as npz:
        if "meta" not in npz.files:
            raise InvalidArgument(f"{path} is not a {FORMAT} archive.")
        meta = json.loads(npz["meta"].item())
        if meta.get("format") != FORMAT:
            raise InvalidArgument(f"{path} is not a {FORMAT} archive.")
        if meta.get("version", 0) > FORMAT_VERSION:
            raise InvalidArgument(f"{path} was written by a newer version (format {meta['version']}).")

        components = []
        for i, entry in enumerate(meta["components"]):
            kind = ComponentKind(entry["kind"])
            if kind is ComponentKind.ARRAY:
                value = npz[f"{_COMPONENT_PREFIX}{i}"]
            elif kind is ComponentKind.SCALAR:
                value = _scalar_from_json(entry["value"])
            else:
                value = entry["value"]
            components.append(Component(entry["name"], kind, value, tuple(entry["axes"])))

        rec = Recording(
            header=Header.from_dict(meta["header"]),
            time_pts=npz["time_pts"],
            epoch_time=npz["epoch_time"],
            data=npz["data"],
            components=Components(components),
            markers=MarkerTable.from_list(meta["markers"]),
            locations=LocationTable.from_list(meta["locations"]),
        )

    logger.info("Loaded: %s", rec.summary())
    return rec


def _scalar_to_json(value: Number) -> Any:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, complex):
        return {"real": value.real, "imag": value.imag}
    return value


def _scalar_from_json(value: Any) -> Number:
    if isinstance(value, dict):
        return complex(value["real"], value["imag"])
    return value


# ---- importers ----
def import_mdf(
    path: str | Path,
    channels: Iterable[str] | None = None,
    *,
    data_type: str = "eeg",
    config: IOConfig | None = None,
) -> Recording:
    """
    Import an MDF 3/4 file.

    Every selected channel is resampled onto the time raster of the first
    one; the sampling rate is estimated from that raster.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File {path} cannot be loaded.")
    config = config or IOConfig()

    with AsammdfReader(str(path)) as reader:
        names = [c.name for c in reader.list_channels()] if channels is None else list(channels)
        if not names:
            raise InvalidArgument(f"{path} contains no signal channels.")
        raw = reader.read_channels(names)

    raster = raw[names[0]].time
    if raster.size < 2:
        raise InvalidArgument(f"Channel '{names[0]}' holds fewer than two samples.")
    data = np.stack([resample_onto(raster, raw[n]) for n in names])
    labels = [clean_label(n) for n in names] if config.clean_labels else names

    rec = Recording.from_array(
        data,
        estimate_sampling_rate(raster),
        labels=labels,
        channel_types=None if config.detect_channel_types else ["other"] * len(names),
        units=[raw[n].unit for n in names],
        data_type=data_type,
        time_start=float(raster[0]),
        file_name=path.name,
        file_type="MDF",
    )
    logger.info("Imported: %s", rec.summary())
    return rec


def import_recording(path: str | Path, *, config: IOConfig | None = None, **kwargs: Any) -> Recording:
    """Pick the importer from the file extension."""
    path = Path(path)
    name = path.name.lower()
    if name.endswith(".npz"):
        return load(path)
    if name.endswith(".csv") or name.endswith(".csv.gz"):
        return import_csv(path, config=config, **kwargs)
    if path.suffix.lower() in (".mf4", ".mdf", ".dat"):
        return import_mdf(path, config=config, **kwargs)
    raise InvalidArgument(f"Unsupported file format: {path.name}")
