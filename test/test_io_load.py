# test/test_io_load.py
import json
import logging

import numpy as np
import pytest

from neurotensor.config import IOConfig
from neurotensor.core import (
    InvalidArgument,
    LocationTable,
    MarkerTable,
    OptodePair,
    OptodePairing,
    Recording,
    SubjectInfo,
)
from neurotensor.edit import delete_channel, epoch
from neurotensor.io.load import FORMAT, import_recording, load, save


def _helper() -> Recording:
    data = np.random.default_rng(0).normal(size=(4, 40)).astype(np.float32)
    rec = Recording.from_array(
        data,
        20,
        labels=["Fz", "Cz", "Pz", "EOG"],
        units=["uV", "uV", "uV", "mV"],
        time_start=1.5,
        markers=MarkerTable.from_records([("stim", 5, 2, "left", -1), ("blink", 30, 0, "", 3)]),
        locations=LocationTable.from_coordinates(["Fz", "Cz", "Pz"], theta=[0, 0, 180], radius=[0.25, 0, 0.25]),
        subject=SubjectInfo(id="S01", handedness="right", attrs={"age": 31}),
        recording_notes="eyes closed",
    )
    rec = epoch(rec, ep_len=10)
    rec = rec.add_component("mean", rec.data.mean(axis=1), axes=("channel", "epoch"))
    rec = rec.add_component("snr", 3 + 0.5j)
    rec = rec.add_component("names", ["a", "b"])
    return rec


def test_save_load_round_trip(tmp_path, caplog):
    rec = _helper()
    path = save(rec, tmp_path / "rec.npz")
    assert path.is_file()

    with caplog.at_level(logging.INFO, logger="neurotensor.io.load"):
        back = load(path)

    assert back == rec
    assert back.data.dtype == np.float32
    assert back.history == rec.history
    assert back.header.subject.attrs == {"age": 31}
    assert back.components["snr"].value == 3 + 0.5j
    assert back.components["names"].value == ("a", "b")
    np.testing.assert_array_equal(back.components["mean"].value, rec.components["mean"].value)
    assert list(back.markers) == list(rec.markers)
    assert back.locations.labels == ["Fz", "Cz", "Pz"]
    assert "Loaded: EEG" in caplog.text


def test_round_trip_after_edits_and_with_optodes(tmp_path):
    pairing = OptodePairing(("S1", "D1"), (OptodePair("S1_D1 760", "S1", "D1"),))
    rec = Recording.from_array(
        np.arange(12.0).reshape(2, 6),
        5,
        labels=["S1_D1 760", "AUX"],
        channel_types=["nirs_int", "nirs_aux"],
        data_type="nirs",
        optode_pairing=pairing,
    )
    rec = delete_channel(rec, "AUX")
    back = load(save(rec, tmp_path / "nirs.npz"))
    assert back == rec
    assert back.header.recording.optode_pairing == rec.header.recording.optode_pairing
    assert back.history == ("delete_channel(OBJ, ch=[1])",)


def test_save_refuses_to_overwrite(tmp_path):
    rec = _helper()
    path = tmp_path / "rec.npz"
    save(rec, path)
    with pytest.raises(InvalidArgument, match="overwrite"):
        save(rec, path)
    save(rec, path, overwrite=True)
    save(rec, path, config=IOConfig(overwrite=True))


def test_save_requires_npz_suffix(tmp_path):
    with pytest.raises(InvalidArgument):
        save(_helper(), tmp_path / "rec.dat")


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load(tmp_path / "missing.npz")

    foreign = tmp_path / "foreign.npz"
    np.savez(foreign, x=np.zeros(3))
    with pytest.raises(InvalidArgument):
        load(foreign)

    newer = tmp_path / "newer.npz"
    np.savez(newer, meta=np.array(json.dumps({"format": FORMAT, "version": 99})))
    with pytest.raises(InvalidArgument, match="newer"):
        load(newer)


def test_import_recording_dispatch(tmp_path):
    rec = _helper()
    path = save(rec, tmp_path / "rec.npz")
    assert import_recording(path) == rec

    csv = tmp_path / "sig.csv"
    csv.write_text("time,Fz,Cz\n0,1,2\n10,3,4\n20,5,6\n")
    imported = import_recording(csv)
    assert imported.labels == ["Fz", "Cz"]
    assert imported.sampling_rate == 100.0

    with pytest.raises(InvalidArgument, match="Unsupported"):
        import_recording(tmp_path / "rec.edf")
