# timeline/envelope.py
import logging
import math
from dataclasses import dataclass
from typing import List, Tuple

from tinyseq.config import CompileConfig
from tinyseq.notes.decoder import decode_notes, pulses_per_second
from tinyseq.notes.model import DecodedNote, SequenceSpec, TrackSpec
from tinyseq.timeline.curve import Curve, CurvePoint, cutoff

log = logging.getLogger(__name__)


@dataclass
class CompiledTrack:
    spec: TrackSpec
    notes: List[DecodedNote]
    gain_curve: Curve
    frequency_curve: Curve

    @property
    def wave(self) -> str:
        return self.spec.wave

    @property
    def end_time(self) -> float:
        """Time the last release reaches silence (gaps excluded)."""
        release = self.spec.adsr.release
        return max((n.end_time + release for n in self.notes), default=0.0)


@dataclass
class CompiledSequence:
    spec: SequenceSpec
    tracks: Tuple[CompiledTrack, ...]
    duration: float  # shared by every track; the reference track stops here


def compile_track(notes: List[DecodedNote], track: TrackSpec,
                  cfg: CompileConfig = CompileConfig()) -> CompiledTrack:
    eps = cfg.epsilon
    adsr = track.adsr
    gain: Curve = []
    freq: Curve = []

    for i, note in enumerate(notes):
        time = note.start_time
        slide = i > 0 and track.portamento > 0

        # 重疊：先把前一個音的 sustain 收到 0，避免兩個音疊加
        if i > 0:
            cutoff(gain, time - max(track.cutoff_duration, eps))
            gain.append(CurvePoint(max(0.0, time - eps / 2), 0.0, True))

        # ADSR
        if adsr.attack > 0:
            gain.append(CurvePoint(time, 0.0, False))
        if adsr.decay > 0:
            gain.append(CurvePoint(time + adsr.attack, note.volume, adsr.attack > 0))
        gain.append(CurvePoint(time + adsr.attack + adsr.decay, adsr.sustain * note.volume,
                               adsr.attack + adsr.decay > 0))
        gain.append(CurvePoint(math.inf, adsr.sustain * note.volume, False))
        cutoff(gain, note.end_time)
        gain.append(CurvePoint(note.end_time + adsr.release, 0.0, True))

        # hold the previous pitch, then glide into this one
        if slide:
            last = notes[i - 1]
            freq.append(CurvePoint(time - (time - last.start_time) * track.portamento,
                                   last.frequency, False))
        freq.append(CurvePoint(time, note.frequency, slide))

    return CompiledTrack(spec=track, notes=list(notes), gain_curve=gain, frequency_curve=freq)


def compile_sequence(spec: SequenceSpec, cfg: CompileConfig = CompileConfig()) -> CompiledSequence:
    pps = pulses_per_second(spec.bpm, spec.ppqn)
    lead, trail = spec.gaps

    tracks = []
    for track in spec.tracks:
        notes = decode_notes(track.data, pps, lead, track.mixer)
        tracks.append(compile_track(notes, track, cfg))

    # one duration for all tracks so they all stop with the reference track
    ends = [t.end_time + trail for t in tracks if t.notes]
    duration = max(ends, default=0.0)

    log.info("Compiled %d track(s), %d note(s), duration=%.3fs",
             len(tracks), sum(len(t.notes) for t in tracks), duration)
    return CompiledSequence(spec=spec, tracks=tuple(tracks), duration=duration)
