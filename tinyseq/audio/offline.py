# audio/offline.py
import logging
import math
from bisect import bisect_right
from typing import List, Optional, Tuple

import numpy as np

from tinyseq.audio.backend import (
    AudioContext, AudioNode, AudioParam, BufferSourceNode, FilterNode, GainNode,
    OscillatorNode, SourceNode,
)

log = logging.getLogger(__name__)

SET = "set"
RAMP = "ramp"


def _check_time(when: float, what: str):
    if not math.isfinite(when) or when < 0:
        raise ValueError(f"{what}: time must be finite and >= 0, got {when}")


class RecordedParam(AudioParam):
    """Keeps every automation event so the curve can be inspected or sampled."""
    def __init__(self, value: float = 0.0):
        self.value = value
        self.events: List[Tuple[str, float, float]] = []  # (kind, value, when), sorted by when
        self._times: List[float] = []

    def _insert(self, kind: str, value: float, when: float):
        _check_time(when, kind)
        i = bisect_right(self._times, when)
        self._times.insert(i, when)
        self.events.insert(i, (kind, float(value), when))

    def set_value_at_time(self, value: float, when: float):
        self._insert(SET, value, when)

    def linear_ramp_to_value_at_time(self, value: float, when: float):
        self._insert(RAMP, value, when)

    def value_at(self, t: float) -> float:
        """Value in effect at ``t``; a ramp starts from the previous event."""
        v, prev_t = self.value, 0.0
        for kind, value, when in self.events:
            if when <= t:
                v, prev_t = value, when
                continue
            if kind == RAMP and when > prev_t:
                return v + (value - v) * (t - prev_t) / (when - prev_t)
            return v
        return v


class RecordedNode(AudioNode):
    def __init__(self, context: "OfflineContext"):
        self.context = context
        self.outputs: List[AudioNode] = []

    def connect(self, node: AudioNode) -> AudioNode:
        self.outputs.append(node)
        return node

    def disconnect(self):
        self.outputs.clear()


class RecordedGain(RecordedNode, GainNode):
    def __init__(self, context):
        super().__init__(context)
        self.gain = RecordedParam(1.0)


class RecordedFilter(RecordedNode, FilterNode):
    def __init__(self, context):
        super().__init__(context)
        self.type = "lowpass"
        self.frequency = RecordedParam(350.0)
        self.gain = RecordedParam(0.0)


class RecordedSource(RecordedNode, SourceNode):
    def __init__(self, context):
        super().__init__(context)
        self.on_ended = None
        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None
        self.ended = False

    def start(self, when: float):
        if self.start_time is not None:
            raise RuntimeError("source already started")
        _check_time(when, "start")
        self.start_time = when

    def stop(self, when: Optional[float] = None):
        if self.start_time is None:
            raise RuntimeError("source was never started")
        if when is None:
            when = self.context.current_time
        _check_time(when, "stop")
        self.stop_time = when
        self.context._schedule_end(self)


class RecordedOscillator(RecordedSource, OscillatorNode):
    def __init__(self, context):
        super().__init__(context)
        self.type = "sine"
        self.frequency = RecordedParam(440.0)


class RecordedBufferSource(RecordedSource, BufferSourceNode):
    def __init__(self, context):
        super().__init__(context)
        self.buffer = None
        self.loop = False


class OfflineContext(AudioContext):
    """Audio context that records the graph and runs on a manual clock.

    Nothing is rendered. ``advance``/``advance_to`` move the clock and deliver
    the ``on_ended`` notifications of sources whose stop time has passed, in
    stop-time order, including sources created by those callbacks.
    """
    def __init__(self, sample_rate: int = 44100, start_time: float = 0.0, seed: Optional[int] = None):
        self.sample_rate = sample_rate
        self.destination = RecordedNode(self)
        self.sources: List[RecordedSource] = []
        self._pending: List[RecordedSource] = []
        self._now = float(start_time)
        self._rng = np.random.default_rng(seed)

    @property
    def current_time(self) -> float:
        return self._now

    # ---------- graph ----------
    def create_gain(self) -> RecordedGain:
        return RecordedGain(self)

    def create_filter(self) -> RecordedFilter:
        return RecordedFilter(self)

    def create_oscillator(self) -> RecordedOscillator:
        src = RecordedOscillator(self)
        self.sources.append(src)
        return src

    def create_buffer_source(self) -> RecordedBufferSource:
        src = RecordedBufferSource(self)
        self.sources.append(src)
        return src

    def create_noise_buffer(self, seconds: float) -> np.ndarray:
        n = int(self.sample_rate * seconds)
        return self._rng.uniform(-1.0, 1.0, n).astype(np.float32)

    # ---------- clock ----------
    def advance(self, seconds: float) -> int:
        return self.advance_to(self._now + seconds)

    def advance_to(self, t: float) -> int:
        if t < self._now:
            raise ValueError(f"clock cannot go backwards ({t} < {self._now})")
        fired = self._deliver_until(t)
        self._now = t
        return fired

    def _schedule_end(self, src: RecordedSource):
        if not src.ended and src not in self._pending:
            self._pending.append(src)

    def _deliver_until(self, t: float) -> int:
        fired = 0
        while True:
            due = [s for s in self._pending if s.stop_time <= t]
            if not due:
                return fired
            src = min(due, key=lambda s: s.stop_time)
            self._pending.remove(src)
            self._now = max(self._now, src.stop_time)
            src.ended = True
            if src.on_ended is not None:
                fired += 1
                log.debug("source ended at %.6f", src.stop_time)
                src.on_ended()
