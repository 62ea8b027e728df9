# timeline/scheduler.py
import enum
import logging
import math
from typing import List, Optional, Union

from tinyseq.audio.backend import AudioContext, AudioNode, AudioParam, GainNode, SourceNode
from tinyseq.config import AppConfig, PlaybackConfig
from tinyseq.errors import StateError
from tinyseq.notes.model import SequenceSpec
from tinyseq.timeline.curve import Curve
from tinyseq.timeline.envelope import CompiledSequence, CompiledTrack, compile_sequence

log = logging.getLogger(__name__)


class PlaybackState(enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"


class TrackRuntime:
    """Backend nodes of one track.

    The mixer chain (track gain → bass/mid/treble filters → destination) lives
    as long as the sequencer; source and amplitude node only while playing.
    """
    def __init__(self, compiled: CompiledTrack, context: AudioContext,
                 destination: AudioNode, cfg: PlaybackConfig):
        self.compiled = compiled
        self.source: Optional[SourceNode] = None
        self.amp: Optional[GainNode] = None

        mixer = compiled.spec.mixer
        self.gain = context.create_gain()
        self.gain.gain.value = mixer.volume

        prev: AudioNode = self.gain
        self.filters = []
        for freq, db in zip(cfg.eq_bands, mixer.band_gains):
            f = context.create_filter()
            f.type = cfg.filter_type
            f.frequency.value = freq
            f.gain.value = db
            prev.connect(f)
            prev = f
            self.filters.append(f)
        prev.connect(destination)

    @property
    def gain_curve(self) -> Curve:
        return self.compiled.gain_curve

    @property
    def frequency_curve(self) -> Curve:
        return self.compiled.frequency_curve


def schedule_curve(param: AudioParam, curve: Curve, start_time: float,
                   scale: float = 1.0, floor: float = 1e-6):
    for p in curve:
        if math.isinf(p.time):
            continue
        when = start_time + p.time
        if p.is_ramp:
            param.linear_ramp_to_value_at_time(max(floor, p.value * scale), when)
        else:
            param.set_value_at_time(p.value * scale, when)


class Sequencer:
    """
    Plays a compiled sequence on an audio context.

    - play(loop, volume, start_time) -> schedules every track, stop() first
    - stop() idempotent, safe inside the ended callback
    - track 0 is the reference track: its ended notification stops the
      sequence and, when looping, starts the next iteration on the audio clock

    Two play() calls from different threads are not serialised; callers
    own that.
    """
    def __init__(self, context: AudioContext, sequence: Union[SequenceSpec, CompiledSequence, dict],
                 destination: Optional[AudioNode] = None, cfg: Optional[AppConfig] = None):
        self.cfg = cfg or AppConfig()
        self.context = context
        if isinstance(sequence, dict):
            sequence = SequenceSpec.from_dict(sequence)
        if isinstance(sequence, SequenceSpec):
            sequence = compile_sequence(sequence, self.cfg.compile)
        self.compiled: CompiledSequence = sequence

        dest = destination if destination is not None else context.destination
        self.tracks: List[TrackRuntime] = [
            TrackRuntime(t, context, dest, self.cfg.playback) for t in self.compiled.tracks
        ]

        self.state = PlaybackState.IDLE
        self._start_time: Optional[float] = None
        self._anchor = 0.0        # start of the first loop iteration
        self._started = 0
        self._loop = False
        self._ended_source: Optional[SourceNode] = None

    @property
    def duration(self) -> float:
        return self.compiled.duration

    @property
    def loop_count(self) -> int:
        """Iterations started since the last play() call."""
        return self._started

    def set_loop(self, loop: bool):
        """Change looping for the running pass; checked when the pass ends."""
        self._loop = bool(loop)

    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    def current_time(self) -> float:
        if self.state is not PlaybackState.PLAYING:
            raise StateError("current_time() is only defined while playing")
        return self.context.current_time - self._start_time

    # ---------- playback ----------
    def play(self, loop: bool = False, volume: float = 1.0, start_time: Optional[float] = None):
        if start_time is None:
            start_time = self.context.current_time
        self._anchor = start_time
        self._started = 0
        self._loop = bool(loop)
        self._start(volume, 0)

    def _start(self, volume: float, iteration: int):
        self.stop()

        # anchor + k·duration, so iterations never accumulate rounding drift
        time = self._anchor + iteration * self.duration
        self._started += 1
        self._start_time = time
        self.state = PlaybackState.PLAYING
        log.debug("play: t=%.6f iteration=%d loop=%s volume=%.3f", time, iteration, self._loop, volume)

        floor = self.cfg.playback.frequency_floor
        for i, track in enumerate(self.tracks):
            if track.compiled.wave == "noise":
                src = self.context.create_buffer_source()
                src.buffer = self.context.create_noise_buffer(self.cfg.playback.noise_seconds)
                src.loop = True
            else:
                src = self.context.create_oscillator()
                src.type = track.compiled.wave
                schedule_curve(src.frequency, track.frequency_curve, time, floor=floor)

            amp = self.context.create_gain()
            amp.gain.value = 0.0
            amp.connect(track.gain)
            track.amp = amp
            schedule_curve(amp.gain, track.gain_curve, time, scale=volume, floor=floor)

            src.connect(amp)
            src.start(time)
            track.source = src
            src.stop(time + self.duration)

            if i == 0:
                self._subscribe(src, volume, iteration)

    def _subscribe(self, src: SourceNode, volume: float, iteration: int):
        self._unsubscribe()

        def on_ended():
            self.stop()
            if not self._loop:
                return
            if self.duration <= 0:
                log.warning("loop requested on a zero-length sequence; not restarting")
                return
            self._start(volume, iteration + 1)

        src.on_ended = on_ended
        self._ended_source = src

    def _unsubscribe(self):
        if self._ended_source is not None:
            self._ended_source.on_ended = None
            self._ended_source = None

    def stop(self):
        if self.state is not PlaybackState.PLAYING:
            return
        self._unsubscribe()
        for track in self.tracks:
            if track.source is not None:
                track.source.on_ended = None
                track.source.stop()
                track.source.disconnect()
            if track.amp is not None:
                track.amp.disconnect()
            track.source = None
            track.amp = None
        self._start_time = None
        self.state = PlaybackState.IDLE
        log.debug("stop")
