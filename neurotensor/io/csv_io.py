# neurotensor/io/csv_io.py
from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import yaml

from neurotensor.config import IOConfig
from neurotensor.core import InvalidArgument, Recording, clean_label
from neurotensor.core.timeaxis import estimate_sampling_rate


logger = logging.getLogger(__name__)


def import_csv(
    path: str | Path,
    *,
    detect_type: bool | None = None,
    data_type: str = "eeg",
    config: IOConfig | None = None,
) -> Recording:
    """
    Load a CSV (optionally gzipped) signal file.

    Two layouts are recognised:
    - time x channels: numeric first column holding time in ms, header row with labels
    - channels x time: first column holding labels, header row with times in ms
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File {path} cannot be loaded.")
    config = config or IOConfig()
    detect = config.detect_channel_types if detect_type is None else detect_type

    df = pd.read_csv(path)
    if df.shape[1] < 2 or df.shape[0] < 1:
        raise InvalidArgument(f"{path} must hold a time column/row and at least one channel.")

    if pd.api.types.is_numeric_dtype(df.iloc[:, 0]):
        time_ms = df.iloc[:, 0].to_numpy(dtype=float)
        signals = df.iloc[:, 1:].to_numpy().T
        labels = [str(c) for c in df.columns[1:]]
    else:
        try:
            time_ms = np.asarray([float(c) for c in df.columns[1:]])
        except ValueError as e:
            raise InvalidArgument(f"{path}: header row must hold sample times in ms.") from e
        signals = df.iloc[:, 1:].to_numpy()
        labels = [str(v) for v in df.iloc[:, 0]]

    if not np.issubdtype(signals.dtype, np.number):
        raise InvalidArgument(f"{path}: signal values must be numeric.")
    if config.clean_labels:
        labels = [clean_label(lbl) for lbl in labels]

    sampling_rate = estimate_sampling_rate(time_ms / 1000.0)
    rec = Recording.from_array(
        signals.astype(float),
        sampling_rate,
        labels=labels,
        channel_types=None if detect else ["other"] * len(labels),
        data_type=data_type,
        file_name=path.name,
        file_type="CSV",
    )
    logger.info("Imported: %s", rec.summary())
    return rec


def export_csv(
    rec: Recording,
    path: str | Path,
    *,
    header: bool = False,
    markers: bool = False,
    locs: bool = False,
    overwrite: bool | None = None,
    config: IOConfig | None = None,
) -> list[Path]:
    """
    Write the signal as time (ms) x channels CSV; epochs are concatenated.

    Optional sidecars next to the CSV: <stem>_header.yml, <stem>_markers.csv
    and <stem>_locs.csv. Returns the written paths.
    """
    config = config or IOConfig()
    overwrite = config.overwrite if overwrite is None else overwrite
    path = Path(path)
    stem = path.name[: -len(".csv")] if path.name.endswith(".csv") else path.stem

    sidecars = {
        "header": path.with_name(f"{stem}_header.yml") if header else None,
        "markers": path.with_name(f"{stem}_markers.csv") if markers else None,
        "locs": path.with_name(f"{stem}_locs.csv") if locs else None,
    }
    targets = [path, *(p for p in sidecars.values() if p is not None)]
    for target in targets:
        if target.exists() and not overwrite:
            raise InvalidArgument(f"File {target} cannot be saved, to overwrite use overwrite=True.")

    flat = rec.data.transpose(0, 2, 1).reshape(rec.channel_count, rec.signal_length)
    df = pd.DataFrame(flat.T, columns=rec.labels)
    df.insert(0, "time", (rec.time_pts - rec.time_pts[0]) * 1000.0)
    df.to_csv(path, index=False)

    if sidecars["header"] is not None:
        with open(sidecars["header"], "w", encoding="utf-8") as f:
            yaml.safe_dump(rec.header.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    if sidecars["markers"] is not None:
        rec.markers.frame.to_csv(sidecars["markers"], index=False)
    if sidecars["locs"] is not None:
        rec.locations.frame.to_csv(sidecars["locs"], index=False)
    return targets
