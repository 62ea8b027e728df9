# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Tuple

@dataclass
class CompileConfig:
    epsilon: float = 1e-6  # orders simultaneous points, keeps cutoff windows non-zero

@dataclass
class PlaybackConfig:
    frequency_floor: float = 1e-6   # ramp targets are clamped to this
    noise_seconds: float = 2.0      # length of the looping noise buffer
    eq_bands: Tuple[float, float, float] = (100.0, 1000.0, 2500.0)  # bass / mid / treble
    filter_type: str = "peaking"

@dataclass
class MonitorConfig:
    window_w: int = 960
    window_h: int = 540
    fps: int = 60
    meter_h: int = 56

@dataclass
class AppConfig:
    compile: CompileConfig = field(default_factory=CompileConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
