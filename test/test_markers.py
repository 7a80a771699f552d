# test/test_markers.py
import numpy as np
import pandas as pd
import pytest

from neurotensor.core import MarkerTable, InvalidArgument, GLOBAL_CHANNEL


def _markers():
    return MarkerTable.from_records(
        [
            ("stim", 100, 0, "left", GLOBAL_CHANNEL),
            ("stim", 2600, 10, "right", GLOBAL_CHANNEL),
            ("spike", 4999, 0, "", 2),
        ]
    )


def test_empty_table_has_all_columns():
    m = MarkerTable()
    assert len(m) == 0
    assert list(m.frame.columns) == ["id", "start", "length", "description", "channel"]
    assert m == MarkerTable.from_records([])


def test_iteration_yields_plain_tuples():
    rows = list(_markers())
    assert rows[0] == ("stim", 100, 0, "left", -1)
    assert all(isinstance(r[1], int) for r in rows)


def test_rejects_negative_length_and_missing_columns():
    with pytest.raises(InvalidArgument):
        MarkerTable.from_records([("stim", 0, -1, "", -1)])
    with pytest.raises(InvalidArgument):
        MarkerTable(pd.DataFrame({"id": ["x"], "start": [0]}))


def test_validate_bounds():
    m = _markers()
    m.validate(signal_length=5000, channel_count=3)

    with pytest.raises(InvalidArgument):
        m.validate(signal_length=4999, channel_count=3)
    with pytest.raises(InvalidArgument):
        m.validate(signal_length=5000, channel_count=2)


def test_add_keeps_table_sorted_by_start():
    m = _markers().add("resp", 50, description="button")
    assert list(m.starts) == [50, 100, 2600, 4999]
    assert list(m)[0] == ("resp", 50, 0, "button", -1)


def test_delete_within_and_shift_after():
    m = _markers().delete_within(0, 2559).shift_after(2559, 2560)
    assert list(m.starts) == [40, 2439]


def test_truncate_and_window():
    m = _markers()
    assert list(m.truncate(2600).starts) == [100]

    w = m.window(2560, 5119)
    assert list(w.starts) == [40, 2439]
    # source untouched
    assert list(m.starts) == [100, 2600, 4999]


def test_delete_and_insert_channel_shift_channel_references():
    m = MarkerTable.from_records(
        [("a", 0, 0, "", 0), ("b", 1, 0, "", 1), ("c", 2, 0, "", 2), ("g", 3, 0, "", -1)]
    )

    d = m.delete_channel(1)
    assert [r[0] for r in d] == ["a", "c", "g"]
    assert [r[4] for r in d] == [0, 1, -1]

    i = m.insert_channel(1)
    assert [r[4] for r in i] == [0, 2, 3, -1]


def test_records_roundtrip():
    m = _markers()
    assert MarkerTable.from_list(m.to_records()) == m


def test_frame_is_a_copy():
    m = _markers()
    f = m.frame
    f.loc[0, "start"] = 999
    assert m.starts[0] == 100
    assert m.frame["start"].dtype == np.int64
