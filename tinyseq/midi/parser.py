# midi/parser.py
import logging
from typing import Dict, List, Tuple

import mido

log = logging.getLogger(__name__)

DEFAULT_TRACK = {
    "wave": "square",
    "mixer": [0.5, 0.5, 0, 0, 0],
    "adsr": [0.01, 0.1, 0.7, 0.1],
    "portamento": 0,
    "cutoffDuration": 0.01,
}


def parse_midi_ticks(path: str) -> Tuple[Dict[int, List[Tuple[int, int, int, int]]], int, float]:
    """Read note spans as (start_tick, end_tick, pitch, velocity) per channel.

    Returns (notes_by_channel, ticks_per_beat, bpm). Only the first tempo is
    used; later tempo changes are logged and ignored.
    """
    mid = mido.MidiFile(path)
    tempo = None
    tick = 0
    active = {}
    notes: Dict[int, List[Tuple[int, int, int, int]]] = {}

    for msg in mido.merge_tracks(mid.tracks):
        tick += msg.time
        if msg.is_meta:
            if msg.type == 'set_tempo':
                if tempo is None:
                    tempo = msg.tempo
                elif msg.tempo != tempo:
                    log.warning("%s: tempo change at tick %d ignored", path, tick)
        else:
            if msg.type == 'note_on' and msg.velocity > 0:
                active[(msg.channel, msg.note)] = (tick, msg.velocity)
            elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
                key = (msg.channel, msg.note)
                if key in active:
                    st, vel = active.pop(key)
                    notes.setdefault(msg.channel, []).append((st, tick, msg.note, vel))
    # close dangling
    for (ch, p), (st, vel) in active.items():
        notes.setdefault(ch, []).append((st, tick, p, vel))

    for spans in notes.values():
        spans.sort(key=lambda n: (n[0], n[2]))
    bpm = mido.tempo2bpm(tempo if tempo is not None else 500000)  # default 120 bpm
    return notes, mid.ticks_per_beat, bpm


def pack_track(spans: List[Tuple[int, int, int, int]]) -> List[int]:
    """Quartered note table: deltas, durations, MIDI numbers, velocities."""
    deltas, durations, pitches, velocities = [], [], [], []
    prev = 0
    for start, end, pitch, vel in spans:
        deltas.append(start - prev)
        durations.append(end - start)
        pitches.append(pitch)
        velocities.append(vel)
        prev = start
    return deltas + durations + pitches + velocities


def midi_to_sequence(path: str, track_defaults: dict = None, skip_drums: bool = True) -> dict:
    """Convert a MIDI file into a sequence dict, one track per channel."""
    notes, tpb, bpm = parse_midi_ticks(path)
    defaults = dict(DEFAULT_TRACK, **(track_defaults or {}))
    tracks = []
    for ch in sorted(notes):
        if skip_drums and ch == 9:  # GM 打擊樂頻道
            continue
        track = dict(defaults)
        track["data"] = pack_track(notes[ch])
        tracks.append(track)
    log.info("Converted %s: %d track(s), bpm=%.2f, ppqn=%d", path, len(tracks), bpm, tpb)
    return {"bpm": bpm, "ppqn": tpb, "gaps": [0, 0], "tracks": tracks}
