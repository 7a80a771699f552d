# test/test_csv_io.py
import numpy as np
import pandas as pd
import pytest
import yaml

from neurotensor.config import IOConfig
from neurotensor.core import InvalidArgument, LocationTable, MarkerTable, Recording
from neurotensor.edit import epoch
from neurotensor.io.csv_io import export_csv, import_csv
from neurotensor.io.load import import_recording


def _helper() -> Recording:
    data = np.random.default_rng(1).normal(size=(3, 24))
    return Recording.from_array(
        data,
        20,
        labels=["Fz", "Cz", "EOG"],
        markers=MarkerTable.from_records([("stim", 4, 0, "", -1)]),
        locations=LocationTable.from_coordinates(["Fz", "Cz"], x=[0.0, 0.0], y=[0.5, 0.0]),
    )


def test_export_import_round_trip(tmp_path):
    rec = epoch(_helper(), ep_len=8)
    [path] = export_csv(rec, tmp_path / "sig.csv")

    df = pd.read_csv(path)
    assert list(df.columns) == ["time", "Fz", "Cz", "EOG"]
    assert df["time"].iloc[1] == pytest.approx(50.0)

    back = import_csv(path)
    assert back.labels == rec.labels
    assert back.channel_types == ["eeg", "eeg", "eog"]
    assert back.sampling_rate == 20.0
    assert back.epoch_count == 1
    assert back.header.recording.file_type == "CSV"
    assert back.header.recording.file_name == "sig.csv"
    flat = rec.data.transpose(0, 2, 1).reshape(3, 24)
    np.testing.assert_allclose(back.data[:, :, 0], flat)


def test_import_channels_by_time_layout(tmp_path):
    path = tmp_path / "wide.csv"
    path.write_text("label,0,4,8,12\nFz,1,2,3,4\nCz,5,6,7,8\n")
    rec = import_csv(path)
    assert rec.labels == ["Fz", "Cz"]
    assert rec.sampling_rate == 250.0
    assert rec.data.shape == (2, 4, 1)
    assert rec.data[1, 2, 0] == 7.0


def test_import_options(tmp_path):
    path = tmp_path / "raw.csv"
    path.write_text("time,EEG Fp1-REF,EEG O2-REF\n0,1,2\n2,3,4\n4,5,6\n")

    rec = import_csv(path)
    assert rec.labels == ["Fp1", "O2"]
    assert rec.channel_types == ["eeg", "eeg"]

    raw = import_csv(path, detect_type=False, config=IOConfig(clean_labels=False))
    assert raw.labels == ["EEG Fp1-REF", "EEG O2-REF"]
    assert raw.channel_types == ["other", "other"]


def test_import_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        import_csv(tmp_path / "missing.csv")

    text = tmp_path / "text.csv"
    text.write_text("time,Fz\n0,a\n1,b\n")
    with pytest.raises(InvalidArgument):
        import_csv(text)

    header = tmp_path / "header.csv"
    header.write_text("label,a,b\nFz,1,2\n")
    with pytest.raises(InvalidArgument):
        import_csv(header)

    single = tmp_path / "single.csv"
    single.write_text("time\n0\n1\n")
    with pytest.raises(InvalidArgument):
        import_csv(single)


def test_export_sidecars(tmp_path):
    rec = _helper()
    paths = export_csv(rec, tmp_path / "sig.csv", header=True, markers=True, locs=True)
    assert [p.name for p in paths] == ["sig.csv", "sig_header.yml", "sig_markers.csv", "sig_locs.csv"]

    with open(paths[1], encoding="utf-8") as f:
        header = yaml.safe_load(f)
    assert [c["label"] for c in header["recording"]["channels"]] == ["Fz", "Cz", "EOG"]

    markers = pd.read_csv(paths[2])
    assert list(markers["start"]) == [4]

    locs = pd.read_csv(paths[3])
    assert list(locs["label"]) == ["Fz", "Cz"]


def test_export_overwrite(tmp_path):
    rec = _helper()
    export_csv(rec, tmp_path / "sig.csv")
    with pytest.raises(InvalidArgument, match="overwrite"):
        export_csv(rec, tmp_path / "sig.csv")
    # sidecar collisions are checked before anything is written
    (tmp_path / "new_markers.csv").write_text("x\n")
    with pytest.raises(InvalidArgument):
        export_csv(rec, tmp_path / "new.csv", markers=True)
    assert not (tmp_path / "new.csv").exists()

    export_csv(rec, tmp_path / "sig.csv", overwrite=True)
    export_csv(rec, tmp_path / "sig.csv", config=IOConfig(overwrite=True))


def test_gzipped_csv(tmp_path):
    rec = _helper()
    [path] = export_csv(rec, tmp_path / "sig.csv.gz")
    back = import_recording(path)
    np.testing.assert_allclose(back.data, rec.data)
