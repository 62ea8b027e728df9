# notes/decoder.py
from typing import List, Sequence

from tinyseq.errors import ValidationError
from tinyseq.notes.model import DecodedNote, Mixer, quarters

A4_MIDI = 69
A4_HZ = 440.0


def midi_to_frequency(midi: float) -> float:
    return A4_HZ * 2 ** ((midi - A4_MIDI) / 12)


def velocity_to_volume(velocity: float, attenuation: float) -> float:
    return 1 - (1 - velocity / 127) * attenuation


def pulses_per_second(bpm: float, ppqn: float) -> float:
    if bpm <= 0 or ppqn <= 0:
        raise ValidationError(f"bpm and ppqn must be positive (bpm={bpm}, ppqn={ppqn})")
    return bpm * ppqn / 60


def decode_notes(data: Sequence[float], pps: float, leading_gap: float = 0.0,
                 mixer: Mixer = Mixer(1.0, 0.0)) -> List[DecodedNote]:
    """Unpack a quartered note table into absolute-time notes.

    For note i of n: data[i] is pulses since the previous note, data[i+n] the
    duration in pulses, data[i+2n] the MIDI number and data[i+3n] the velocity.
    The first note is measured from ``leading_gap``.
    """
    if pps <= 0:
        raise ValidationError(f"pulses per second must be positive, got {pps}")
    deltas, durations, midis, velocities = quarters(data)

    notes: List[DecodedNote] = []
    time = leading_gap
    for delta, length, midi, velocity in zip(deltas, durations, midis, velocities):
        time += delta / pps
        notes.append(DecodedNote(
            start_time=time,
            duration=length / pps,
            midi=midi,
            frequency=midi_to_frequency(midi),
            volume=velocity_to_volume(velocity, mixer.velocity_attenuation),
        ))
    return notes
