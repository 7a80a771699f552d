# test/test_edit_channels.py
import numpy as np
import pytest

from neurotensor.core import (
    ChannelNotFound,
    InvalidArgument,
    LocationTable,
    MarkerTable,
    OptodePair,
    OptodePairing,
    PreconditionFailed,
    Recording,
)
from neurotensor.edit import (
    add_channel,
    add_labels,
    channel_index,
    delete_channel,
    delete_optode,
    extract_channel,
    get_channel,
    keep_channel,
    keep_channel_type,
    pick,
    rename_channel,
    replace_channel,
    set_channel_type,
    set_channel_unit,
    signal_channels,
)


LABELS_19 = [
    "Fp1", "Fp2", "F7", "F3", "Fz", "F4", "F8", "T3", "C3", "Cz",
    "C4", "T4", "T5", "P3", "Pz", "P4", "T6", "O1", "O2",
]
LABELS = ["Fp1", "Fz", "Cz", "C3", "C4", "A1", "A2", "EOG"]


def _rec() -> Recording:
    n, ep = 64, 2
    data = np.stack([np.full((n, ep), float(i)) for i in range(len(LABELS))])
    markers = MarkerTable.from_records(
        [("a", 0, 0, "", 2), ("b", 1, 0, "", 4), ("g", 2, 0, "", -1)]
    )
    locs = LocationTable.from_coordinates(
        LABELS[:5], x=[-0.3, 0.0, 0.0, -0.5, 0.5], y=[0.9, 0.5, 0.0, 0.0, 0.0]
    )
    rec = Recording.from_array(data, 256, labels=LABELS, units="uV", markers=markers, locations=locs)
    bad = np.zeros((len(LABELS), ep), dtype=bool)
    bad[2, 1] = True
    bad[4, 0] = True
    return rec.evolve(header=rec.header.with_recording(bad_channels=bad.tolist()))


def _nirs() -> Recording:
    labels = ["S1_D1 760", "S1_D1 850", "S2_D1 760", "AUX1"]
    pairing = OptodePairing(
        optodes=("S1", "S2", "D1"),
        pairs=(
            OptodePair("S1_D1 760", "S1", "D1"),
            OptodePair("S1_D1 850", "S1", "D1"),
            OptodePair("S2_D1 760", "S2", "D1"),
        ),
    )
    return Recording.from_array(
        np.zeros((4, 32)),
        10,
        labels=labels,
        channel_types=["nirs_int", "nirs_int", "nirs_int", "nirs_aux"],
        data_type="nirs",
        optode_pairing=pairing,
    )


# ---- delete_channel ----
def test_delete_five_of_twenty_four_channels():
    labels = LABELS_19 + ["A1", "A2", "EOG1", "EOG2", "ECG"]
    data = np.broadcast_to(np.arange(24, dtype=np.float32)[:, None], (24, 309760)).copy()
    rec = Recording.from_array(data, 256, labels=labels).add_component("snr", 1.0)

    out = delete_channel(rec, range(19, 24))

    assert out.channel_count == 19
    assert out.epoch_count == 1
    assert out.epoch_length == 309760
    assert out.labels == LABELS_19
    assert len(out.header.recording.channels) == 19
    assert out.bad_channels.shape == (19, 1)
    assert out.history == ("delete_channel(OBJ, ch=[19, 20, 21, 22, 23])",)
    assert len(out.components) == 0
    np.testing.assert_array_equal(out.data[:, 0, 0], np.arange(19))
    # input untouched
    assert rec.channel_count == 24
    assert len(rec.components) == 1


def test_delete_channel_updates_every_per_channel_table():
    rec = _rec()
    out = delete_channel(rec, ["Cz", 0])

    assert out.labels == ["Fz", "C3", "C4", "A1", "A2", "EOG"]
    assert out.units == ["uV"] * 6
    np.testing.assert_array_equal(out.data[:, 0, 0], [1, 3, 4, 5, 6, 7])

    bad = out.bad_channels
    assert bad.shape == (6, 2)
    assert bad[2, 0] and bad.sum() == 1

    assert out.locations.labels == ["Fz", "C3", "C4"]
    assert list(out.locations.frame["channel"]) == [0, 1, 2]

    assert list(out.markers) == [("b", 1, 0, "", 2), ("g", 2, 0, "", -1)]


def test_delete_channel_errors_leave_input_untouched():
    rec = _rec()
    before = rec.copy()

    with pytest.raises(InvalidArgument):
        delete_channel(rec, range(8), inplace=True)
    with pytest.raises(ChannelNotFound):
        delete_channel(rec, ["Cz", "O1"], inplace=True)
    with pytest.raises(InvalidArgument):
        delete_channel(rec, [], inplace=True)

    assert rec == before


def test_delete_only_channel_fails():
    rec = Recording.from_array(np.zeros((1, 10)), 10, labels=["Cz"])
    with pytest.raises(InvalidArgument):
        delete_channel(rec, "Cz")


def test_delete_channel_inplace_returns_same_object():
    rec = _rec()
    out = delete_channel(rec, "EOG", inplace=True)
    assert out is rec
    assert rec.channel_count == 7
    assert rec.history == ("delete_channel(OBJ, ch=[7])",)


# ---- keep_channel / keep_channel_type ----
def test_keep_channel_equals_delete_of_complement():
    rec = _rec()
    kept = keep_channel(rec, ["Fz", "Cz", "A1"])
    deleted = delete_channel(rec, [0, 3, 4, 6, 7])
    assert kept == deleted
    assert kept.labels == ["Fz", "Cz", "A1"]


def test_keep_and_delete_are_complementary():
    rec = _rec()
    kept = keep_channel(rec, ["Fp1"])
    deleted = delete_channel(rec, ["Fp1"])
    assert set(kept.labels) | set(deleted.labels) == set(LABELS)
    assert set(kept.labels) & set(deleted.labels) == set()


def test_keep_all_channels_is_a_no_op():
    rec = _rec()
    out = keep_channel(rec, range(8))
    assert out == rec
    assert out is not rec
    assert out.history == ()

    with pytest.raises(InvalidArgument):
        keep_channel(rec, [])


def test_keep_channel_type_is_idempotent():
    rec = _rec()
    once = keep_channel_type(rec, "eeg")
    twice = keep_channel_type(once, "eeg")
    assert once.labels == ["Fp1", "Fz", "Cz", "C3", "C4"]
    assert twice == once

    with pytest.raises(InvalidArgument):
        keep_channel_type(rec, "ecg")
    with pytest.raises(InvalidArgument):
        keep_channel_type(rec, "brainwave")


# ---- NIRS optode pairs ----
def test_paired_nirs_channels_need_delete_optode():
    rec = _nirs()
    with pytest.raises(PreconditionFailed, match="delete_optode"):
        delete_channel(rec, "S1_D1 760")

    out = delete_channel(rec, "AUX1")
    assert out.channel_count == 3

    forced = delete_channel(rec, "S1_D1 760", allow_paired=True)
    assert forced.header.recording.optode_pairing.channels == ("S1_D1 850", "S2_D1 760")


def test_delete_optode_removes_its_channels():
    rec = _nirs()
    out = delete_optode(rec, "S1")

    assert out.labels == ["S2_D1 760", "AUX1"]
    pairing = out.header.recording.optode_pairing
    assert pairing.optodes == ("S2", "D1")
    assert pairing.channels == ("S2_D1 760",)
    assert out.history == ("delete_optode(OBJ, opt='S1')",)

    with pytest.raises(InvalidArgument):
        delete_optode(rec, "S9")
    with pytest.raises(PreconditionFailed):
        delete_optode(_rec(), "S1")


# ---- queries ----
def test_channel_queries():
    rec = _rec()
    assert signal_channels(rec) == [0, 1, 2, 3, 4]
    assert channel_index(rec, ["C3", "Fp1", 3]) == [0, 3]
    assert get_channel(rec, "Cz") == 2
    assert get_channel(rec, 2) == "Cz"

    block = extract_channel(rec, ["Cz", "Fz"])
    assert block.shape == (2, 64, 2)
    block[0] = -1.0
    assert rec.data[1, 0, 0] == 1.0


def test_pick_by_region():
    rec = _rec()
    assert pick(rec, "left") == [0, 3]
    assert pick(rec, "right") == [4]
    assert pick(rec, "central") == [1, 2]
    assert pick(rec, "frontal") == [0, 1]
    assert pick(rec, ["left", "frontal"]) == [0]
    with pytest.raises(InvalidArgument):
        pick(rec, "dorsal")


# ---- metadata edits ----
def test_rename_channel_follows_into_locations():
    rec = _rec()
    out = rename_channel(rec, "Cz", "CZ")
    assert out.labels[2] == "CZ"
    assert "CZ" in out.locations.labels
    assert out.history == ("rename_channel(OBJ, ch='Cz', name='CZ')",)

    with pytest.raises(InvalidArgument):
        rename_channel(rec, "Cz", "fz")
    with pytest.raises(InvalidArgument):
        rename_channel(rec, ["Cz", "Fz"], "X")


def test_set_channel_type_and_unit():
    rec = _rec()
    out = set_channel_unit(set_channel_type(rec, "A1", "eeg"), "A1", "mV")
    assert out.channel_types[5] == "eeg"
    assert out.units[5] == "mV"
    assert len(out.history) == 2

    with pytest.raises(InvalidArgument):
        set_channel_type(rec, "A1", "ear")


def test_add_labels_renames_by_position():
    rec = _rec()
    new = [f"E{i}" for i in range(8)]
    out = add_labels(rec, new)
    assert out.labels == new
    assert out.locations.labels == ["E0", "E1", "E2", "E3", "E4"]

    with pytest.raises(InvalidArgument):
        add_labels(rec, new[:3])
    with pytest.raises(InvalidArgument):
        add_labels(rec, ["x"] * 8)


# ---- signal edits ----
def test_replace_channel():
    rec = _rec().add_component("snr", 2.0)
    out = replace_channel(rec, "Cz", np.full((64, 2), 9.0))
    assert np.all(out.data[2] == 9.0)
    assert np.all(rec.data[2] == 2.0)
    assert len(out.components) == 0

    out3 = replace_channel(rec, 0, np.zeros((1, 64, 2)))
    assert np.all(out3.data[0] == 0.0)

    with pytest.raises(InvalidArgument):
        replace_channel(rec, "Cz", np.zeros((64, 3)))


def test_add_channel_shifts_tables():
    rec = _rec()
    out = add_channel(rec, np.ones((64, 2)), "O1", position=0)

    assert out.labels[0] == "O1"
    assert out.channel_types[0] == "eeg"
    assert out.channel_count == 9
    assert out.bad_channels.shape == (9, 2)
    assert not out.bad_channels[0].any()
    assert out.bad_channels[3, 1]
    assert [r[4] for r in out.markers] == [3, 5, -1]
    assert list(out.locations.frame["channel"]) == [1, 2, 3, 4, 5]

    appended = add_channel(rec, np.ones((64, 2)), "Stim", channel_type="mrk")
    assert appended.labels[-1] == "Stim"
    assert appended.channel_types[-1] == "mrk"

    with pytest.raises(InvalidArgument):
        add_channel(rec, np.ones((64, 2)), "cz")
    with pytest.raises(InvalidArgument):
        add_channel(rec, np.ones((64, 2)), "O2", position=10)
    with pytest.raises(InvalidArgument):
        add_channel(rec, np.ones((64, 2)), 7)
    with pytest.raises(InvalidArgument):
        add_channel(rec, np.ones((64, 2)), "  ")
