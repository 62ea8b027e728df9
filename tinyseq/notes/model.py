# notes/model.py
import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from tinyseq.errors import ValidationError

log = logging.getLogger(__name__)

WAVES = ("sine", "square", "sawtooth", "triangle", "noise")

_SEQUENCE_KEYS = {"bpm", "ppqn", "gaps", "tracks"}
_TRACK_KEYS = {"wave", "mixer", "adsr", "portamento", "cutoffDuration", "data"}


def _number(obj: dict, key: str, where: str) -> float:
    if key not in obj:
        raise ValidationError(f"{where}: missing '{key}'")
    v = obj[key]
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
        raise ValidationError(f"{where}: '{key}' must be a finite number, got {v!r}")
    return float(v)


def _numbers(obj: dict, key: str, where: str, length: int) -> List[float]:
    if key not in obj:
        raise ValidationError(f"{where}: missing '{key}'")
    seq = obj[key]
    if not isinstance(seq, (list, tuple)) or len(seq) != length:
        raise ValidationError(f"{where}: '{key}' must be a list of {length} numbers")
    return [_number({key: v}, key, where) for v in seq]


def _in_range(v: float, lo: float, hi: float, name: str, where: str):
    if not (lo <= v <= hi):
        raise ValidationError(f"{where}: {name}={v} outside [{lo}, {hi}]")


def _ignore_unknown(obj: dict, known: set, where: str):
    extra = sorted(set(obj) - known)
    if extra:
        log.debug("%s: ignoring unknown fields %s", where, extra)


@dataclass(frozen=True)
class Mixer:
    volume: float                # track volume 0-1
    velocity_attenuation: float  # how much velocity reduces volume, 0-1
    bass_db: float = 0.0         # 100 Hz
    mid_db: float = 0.0          # 1000 Hz
    treble_db: float = 0.0       # 2500 Hz

    @property
    def band_gains(self) -> Tuple[float, float, float]:
        return (self.bass_db, self.mid_db, self.treble_db)


@dataclass(frozen=True)
class ADSR:
    attack: float   # seconds
    decay: float    # seconds
    sustain: float  # level 0-1
    release: float  # seconds


@dataclass(frozen=True)
class TrackSpec:
    wave: str
    mixer: Mixer
    adsr: ADSR
    portamento: float
    cutoff_duration: float
    data: Tuple[float, ...]

    @property
    def note_count(self) -> int:
        return note_count(len(self.data))

    @classmethod
    def from_dict(cls, obj: dict, index: int = 0) -> "TrackSpec":
        where = f"tracks[{index}]"
        if not isinstance(obj, dict):
            raise ValidationError(f"{where}: expected an object")
        _ignore_unknown(obj, _TRACK_KEYS, where)

        wave = obj.get("wave")
        if wave not in WAVES:
            raise ValidationError(f"{where}: wave must be one of {', '.join(WAVES)}, got {wave!r}")

        vol, att, bass, mid, treble = _numbers(obj, "mixer", where, 5)
        _in_range(vol, 0.0, 1.0, "mixer volume", where)
        _in_range(att, 0.0, 1.0, "velocity attenuation", where)

        a, d, s, r = _numbers(obj, "adsr", where, 4)
        for name, v in (("attack", a), ("decay", d), ("release", r)):
            if not (0.0 <= v < math.inf):
                raise ValidationError(f"{where}: {name}={v} must be a finite value >= 0")
        _in_range(s, 0.0, 1.0, "sustain", where)

        portamento = _number(obj, "portamento", where)
        _in_range(portamento, 0.0, 1.0, "portamento", where)
        cutoff = _number(obj, "cutoffDuration", where)
        if not (0.0 <= cutoff < math.inf):
            raise ValidationError(f"{where}: cutoffDuration={cutoff} must be a finite value >= 0")

        raw = obj.get("data")
        if not isinstance(raw, (list, tuple)):
            raise ValidationError(f"{where}: 'data' must be a list of numbers")
        data = tuple(_number({"data": v}, "data", where) for v in raw)
        check_quartered(len(data), where)
        for k, v in enumerate(data):
            if v < 0:
                raise ValidationError(f"{where}: data[{k}]={v} must be >= 0")

        return cls(
            wave=wave,
            mixer=Mixer(vol, att, bass, mid, treble),
            adsr=ADSR(a, d, s, r),
            portamento=portamento,
            cutoff_duration=cutoff,
            data=data,
        )


@dataclass(frozen=True)
class SequenceSpec:
    bpm: float
    ppqn: int
    gaps: Tuple[float, float]  # (silence before first note, silence after final release)
    tracks: Tuple[TrackSpec, ...]

    @classmethod
    def from_dict(cls, obj: dict) -> "SequenceSpec":
        if not isinstance(obj, dict):
            raise ValidationError("sequence: expected an object")
        _ignore_unknown(obj, _SEQUENCE_KEYS, "sequence")

        bpm = _number(obj, "bpm", "sequence")
        if not (0.0 < bpm < math.inf):
            raise ValidationError(f"sequence: bpm must be positive, got {bpm}")
        ppqn = _number(obj, "ppqn", "sequence")
        if ppqn <= 0 or ppqn != int(ppqn):
            raise ValidationError(f"sequence: ppqn must be a positive integer, got {obj['ppqn']!r}")

        lead, trail = _numbers(obj, "gaps", "sequence", 2)
        if not (0.0 <= lead < math.inf and 0.0 <= trail < math.inf):
            raise ValidationError(f"sequence: gaps must be finite and >= 0, got {[lead, trail]}")

        tracks = obj.get("tracks")
        if not isinstance(tracks, (list, tuple)):
            raise ValidationError("sequence: 'tracks' must be a list")

        return cls(
            bpm=bpm,
            ppqn=int(ppqn),
            gaps=(lead, trail),
            tracks=tuple(TrackSpec.from_dict(t, i) for i, t in enumerate(tracks)),
        )


@dataclass(frozen=True)
class DecodedNote:
    start_time: float  # seconds
    duration: float    # seconds
    midi: float        # MIDI note number, fractional values detune
    frequency: float   # Hz
    volume: float      # 0-1

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


def note_count(length: int) -> int:
    # +0.5 bias kept as-is from the packed format
    return math.floor((length + 0.5) / 4)


def check_quartered(length: int, where: str = "data"):
    n = note_count(length)
    if n * 4 != length:
        raise ValidationError(
            f"{where}: data length {length} does not split into 4 quarters of {n} notes")


def quarters(data: Sequence[float]) -> Tuple[Sequence[float], ...]:
    """Split packed data into (deltas, durations, midis, velocities)."""
    check_quartered(len(data))
    n = note_count(len(data))
    return tuple(data[k * n:(k + 1) * n] for k in range(4))
