# neurotensor/io/locs.py
from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from neurotensor.config import IOConfig
from neurotensor.core import InvalidArgument, LocationTable, Recording, commit, operation


logger = logging.getLogger(__name__)

# EEGLAB .ced columns -> LocationTable columns
_CED_COLUMNS = {
    "theta": "loc_theta",
    "radius": "loc_radius",
    "X": "loc_x",
    "Y": "loc_y",
    "Z": "loc_z",
    "sph_theta": "loc_theta_sph",
    "sph_phi": "loc_phi_sph",
    "sph_radius": "loc_radius_sph",
}


def import_locs(path: str | Path) -> LocationTable:
    """
    Read electrode positions from an EEGLAB .ced or .locs file.

    .ced files carry every coordinate system; .locs files only carry
    planar polar coordinates, the others are derived from them.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File {path} cannot be loaded.")

    suffix = path.suffix.lower()
    if suffix == ".ced":
        df = pd.read_csv(path, sep="\t")
        df.columns = [str(c).strip() for c in df.columns]
        missing = [c for c in ("Number", "labels", *_CED_COLUMNS) if c not in df.columns]
        if missing:
            raise InvalidArgument(f"{path}: missing .ced columns {missing}")
        labels = [str(lbl).strip() for lbl in df["labels"]]
        if df[["X", "Y"]].isna().all().all():
            table = LocationTable.from_coordinates(
                labels, theta=df["theta"].to_numpy(float), radius=df["radius"].to_numpy(float)
            )
        else:
            frame = df.rename(columns=_CED_COLUMNS)
            frame["label"] = labels
            frame["channel"] = df["Number"].astype(np.int64) - 1
            table = LocationTable(frame)
    elif suffix == ".locs":
        df = pd.read_csv(path, sep="\t", header=None, names=["Number", "theta", "radius", "labels"])
        labels = [str(lbl).strip() for lbl in df["labels"]]
        table = LocationTable.from_coordinates(
            labels, theta=df["theta"].to_numpy(float), radius=df["radius"].to_numpy(float)
        )
        frame = table.frame
        frame["channel"] = df["Number"].astype(np.int64).to_numpy() - 1
        table = LocationTable(frame)
    else:
        raise InvalidArgument(f"Unknown electrode file format '{suffix}'; use .ced or .locs.")

    logger.debug("import_locs: %d electrodes from %s", len(table), path.name)
    return table


def export_locs(
    locs: Recording | LocationTable,
    path: str | Path,
    *,
    overwrite: bool | None = None,
    config: IOConfig | None = None,
) -> Path:
    """Write electrode positions as EEGLAB .ced (with header) or .locs (without)."""
    config = config or IOConfig()
    overwrite = config.overwrite if overwrite is None else overwrite
    path = Path(path)
    if path.exists() and not overwrite:
        raise InvalidArgument(f"File {path} cannot be saved, to overwrite use overwrite=True.")

    table = locs.locations if isinstance(locs, Recording) else locs
    frame = table.frame
    number = frame["channel"].to_numpy() + 1

    suffix = path.suffix.lower()
    if suffix == ".ced":
        out = pd.DataFrame({"Number": number, "labels": frame["label"]})
        for src, dst in _CED_COLUMNS.items():
            out[src] = frame[dst]
        out.to_csv(path, sep="\t", index=False)
    elif suffix == ".locs":
        out = pd.DataFrame(
            {"Number": number, "theta": frame["loc_theta"], "radius": frame["loc_radius"], "labels": frame["label"]}
        )
        out.to_csv(path, sep="\t", index=False, header=False)
    else:
        raise InvalidArgument(f"Unknown electrode file format '{suffix}'; use .ced or .locs.")
    return path


def add_locs(
    rec: Recording,
    locs: LocationTable,
    *,
    normalize: bool = False,
    inplace: bool = False,
) -> Recording:
    """
    Attach electrode positions to the channels whose label they name
    (case-insensitive); rows for unknown labels are dropped.
    """
    matched = locs.match(rec.labels)
    if len(matched) == 0:
        raise InvalidArgument("None of the channel labels has an electrode location.")
    missing = [lbl for lbl in rec.labels if lbl not in matched]
    if missing:
        logger.warning("Labels %s not found in electrode locations.", missing)
    if normalize:
        matched = matched.normalize()

    header = rec.header.with_history(operation("add_locs", n=len(matched)))
    result = rec.evolve(header=header, locations=matched)
    return commit(rec, result, inplace)


def load_locs(
    rec: Recording,
    path: str | Path,
    *,
    normalize: bool = False,
    inplace: bool = False,
) -> Recording:
    """import_locs() + add_locs()."""
    return add_locs(rec, import_locs(path), normalize=normalize, inplace=inplace)
