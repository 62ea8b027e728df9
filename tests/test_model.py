import json

import pytest

from tinyseq.errors import ValidationError
from tinyseq.notes.model import SequenceSpec, TrackSpec, note_count, quarters


def test_from_dict_builds_spec(make_sequence, make_track):
    spec = SequenceSpec.from_dict(make_sequence(
        make_track([0, 2, 4, 1, 69, 72, 127, 64], wave="square",
                   mixer=(0.8, 0.5, 1, -2, 3), adsr=(0.01, 0.1, 0.7, 0.2),
                   portamento=0.25, cutoff=0.02),
        bpm=120, ppqn=4, gaps=(0.5, 1)))
    assert spec.bpm == 120
    assert spec.ppqn == 4
    assert spec.gaps == (0.5, 1.0)
    t = spec.tracks[0]
    assert t.wave == "square"
    assert t.mixer.volume == 0.8
    assert t.mixer.velocity_attenuation == 0.5
    assert t.mixer.band_gains == (1, -2, 3)
    assert t.adsr.sustain == 0.7
    assert t.portamento == 0.25
    assert t.cutoff_duration == 0.02
    assert t.note_count == 2


@pytest.mark.parametrize("length", range(0, 41, 4))
def test_note_count_splits_into_equal_quarters(length):
    data = list(range(length))
    n = note_count(length)
    assert n == length // 4
    parts = quarters(data)
    assert len(parts) == 4
    assert all(len(q) == n for q in parts)
    assert [x for q in parts for x in q] == data


@pytest.mark.parametrize("length", [1, 2, 3, 5, 6, 7, 9, 13])
def test_unquartered_data_is_rejected(make_sequence, make_track, length):
    with pytest.raises(ValidationError):
        SequenceSpec.from_dict(make_sequence(make_track([1] * length)))


def test_empty_data_is_valid(make_sequence, make_track):
    spec = SequenceSpec.from_dict(make_sequence(make_track([])))
    assert spec.tracks[0].note_count == 0


@pytest.mark.parametrize("field, value", [
    ("bpm", 0),
    ("bpm", -120),
    ("ppqn", 0),
    ("ppqn", 1.5),
    ("ppqn", -4),
    ("ppqn", float("inf")),
    ("bpm", float("inf")),
    ("bpm", float("nan")),
    ("gaps", [0, float("inf")]),
    ("gaps", [-1, 0]),
    ("gaps", [0]),
    ("tracks", None),
])
def test_bad_sequence_fields(make_sequence, field, value):
    obj = make_sequence()
    obj[field] = value
    with pytest.raises(ValidationError):
        SequenceSpec.from_dict(obj)


@pytest.mark.parametrize("overrides", [
    {"wave": "pulse"},
    {"mixer": (1.5, 0, 0, 0, 0)},
    {"mixer": (1, -0.1, 0, 0, 0)},
    {"mixer": (1, 0, 0, 0)},
    {"adsr": (-0.1, 0, 1, 0)},
    {"adsr": (0, 0, 1.2, 0)},
    {"adsr": (0, 0, 1, -1)},
    {"portamento": 2},
    {"cutoff": -0.5},
    {"mixer": (1, 0, float("inf"), 0, 0)},
])
def test_bad_track_fields(make_sequence, make_track, overrides):
    with pytest.raises(ValidationError):
        SequenceSpec.from_dict(make_sequence(make_track([0, 4, 69, 127], **overrides)))


@pytest.mark.parametrize("data", [
    [-1, 4, 69, 127],
    [0, -4, 69, 127],
    [0, float("inf"), 69, 127],
    [0, 4, float("nan"), 127],
])
def test_bad_note_table_entries(make_sequence, make_track, data):
    with pytest.raises(ValidationError):
        SequenceSpec.from_dict(make_sequence(make_track(data)))


def test_json_infinity_is_rejected(make_sequence):
    text = json.dumps(make_sequence()).replace('"ppqn": 1', '"ppqn": Infinity')
    with pytest.raises(ValidationError):
        SequenceSpec.from_dict(json.loads(text))


def test_missing_track_field(make_track):
    obj = make_track([0, 4, 69, 127])
    del obj["adsr"]
    with pytest.raises(ValidationError, match="adsr"):
        TrackSpec.from_dict(obj)


def test_non_numeric_data(make_track):
    with pytest.raises(ValidationError):
        TrackSpec.from_dict(make_track([0, 4, "a", 127]))


def test_unknown_fields_are_ignored(make_sequence, make_track):
    obj = make_sequence(make_track([0, 4, 69, 127], name="lead"))
    obj["title"] = "demo"
    spec = SequenceSpec.from_dict(obj)
    assert len(spec.tracks) == 1


def test_validation_error_is_a_value_error():
    assert issubclass(ValidationError, ValueError)
