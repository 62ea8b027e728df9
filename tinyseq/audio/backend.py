# audio/backend.py
"""
What the sequencer needs from an audio engine.

- gain / filter nodes that can be chained in series into a destination
- two kinds of source (oscillator, looping buffer) started and stopped at
  absolute times, each reporting "ended" once through ``on_ended``
- parameter automation: step at t, linear ramp ending at t
- a monotonically increasing clock (``current_time``, seconds)
"""
from typing import Callable, Optional


class AudioParam:
    value: float = 0.0

    def set_value_at_time(self, value: float, when: float):
        raise NotImplementedError

    def linear_ramp_to_value_at_time(self, value: float, when: float):
        raise NotImplementedError


class AudioNode:
    def connect(self, node: "AudioNode") -> "AudioNode":
        raise NotImplementedError

    def disconnect(self):
        raise NotImplementedError


class GainNode(AudioNode):
    gain: AudioParam


class FilterNode(AudioNode):
    type: str
    frequency: AudioParam
    gain: AudioParam


class SourceNode(AudioNode):
    on_ended: Optional[Callable[[], None]] = None

    def start(self, when: float):
        raise NotImplementedError

    def stop(self, when: Optional[float] = None):
        """Stop at ``when``; ``None`` means now."""
        raise NotImplementedError


class OscillatorNode(SourceNode):
    type: str
    frequency: AudioParam


class BufferSourceNode(SourceNode):
    buffer = None
    loop: bool = False


class AudioContext:
    sample_rate: int
    destination: AudioNode

    @property
    def current_time(self) -> float:
        raise NotImplementedError

    def create_gain(self) -> GainNode:
        raise NotImplementedError

    def create_filter(self) -> FilterNode:
        raise NotImplementedError

    def create_oscillator(self) -> OscillatorNode:
        raise NotImplementedError

    def create_buffer_source(self) -> BufferSourceNode:
        raise NotImplementedError

    def create_noise_buffer(self, seconds: float):
        raise NotImplementedError
