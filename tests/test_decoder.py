import pytest

from tinyseq.errors import ValidationError
from tinyseq.notes.decoder import (
    decode_notes, midi_to_frequency, pulses_per_second, velocity_to_volume,
)
from tinyseq.notes.model import DecodedNote, Mixer


def test_a4_is_440():
    assert midi_to_frequency(69) == 440.0


def test_frequency_increases_with_midi():
    freqs = [midi_to_frequency(m) for m in range(128)]
    assert all(a < b for a, b in zip(freqs, freqs[1:]))
    assert midi_to_frequency(81) == pytest.approx(880.0)


@pytest.mark.parametrize("attenuation", [0.0, 0.3, 1.0])
def test_volume_bounds(attenuation):
    vols = [velocity_to_volume(v, attenuation) for v in range(128)]
    assert all(1 - attenuation - 1e-12 <= v <= 1.0 for v in vols)
    assert vols[127] == 1.0
    assert vols[0] == pytest.approx(1 - attenuation)


def test_pulses_per_second():
    assert pulses_per_second(120, 96) == 192.0
    with pytest.raises(ValidationError):
        pulses_per_second(0, 96)
    with pytest.raises(ValidationError):
        pulses_per_second(120, 0)


def test_single_note():
    notes = decode_notes([0, 4, 69, 127], pps=1.0)
    assert notes == [DecodedNote(start_time=0.0, duration=4.0, midi=69, frequency=440.0, volume=1.0)]


def test_start_times_accumulate_from_leading_gap():
    data = [2, 3, 1, 2, 60, 64, 100, 127]
    notes = decode_notes(data, pps=2.0, leading_gap=0.5, mixer=Mixer(1.0, 1.0))
    assert [n.start_time for n in notes] == [1.5, 3.0]
    assert [n.duration for n in notes] == [0.5, 1.0]
    assert [n.midi for n in notes] == [60, 64]
    assert notes[0].volume == pytest.approx(100 / 127)
    assert notes[1].volume == 1.0
    assert notes[1].end_time == 4.0


def test_start_times_are_monotonic():
    deltas = [0, 3, 0, 1, 5, 0, 2]
    n = len(deltas)
    data = deltas + [1] * n + [60] * n + [100] * n
    starts = [note.start_time for note in decode_notes(data, pps=4.0)]
    assert starts == sorted(starts)


def test_bad_length():
    with pytest.raises(ValidationError):
        decode_notes([0, 4, 69], pps=1.0)


def test_fractional_midi_keeps_its_pitch():
    notes = decode_notes([0, 4, 69.5, 127], pps=1.0)
    assert notes[0].midi == 69.5
    assert notes[0].frequency == pytest.approx(440.0 * 2 ** (0.5 / 12))
    assert notes[0].frequency == pytest.approx(452.893, abs=1e-3)
