# app.py
import logging
from typing import List

import pygame

from tinyseq.audio.live import PygameContext
from tinyseq.config import AppConfig
from tinyseq.render.renderer import Renderer, TrackMeter
from tinyseq.timeline.scheduler import Sequencer
from tinyseq.utils.crashlog import log_exception

log = logging.getLogger(__name__)


def sample_meters(seq: Sequencer) -> List[TrackMeter]:
    """Current gain / frequency of each track, read back from the automation."""
    now = seq.context.current_time
    meters = []
    for i, track in enumerate(seq.tracks):
        gain, freq = 0.0, None
        if track.amp is not None:
            gain = track.amp.gain.value_at(now)
        if track.source is not None and hasattr(track.source, "frequency"):
            freq = track.source.frequency.value_at(now)
        meters.append(TrackMeter(f"track {i}", track.compiled.wave, gain, freq))
    return meters


class App:
    """pygame monitor: Space play/stop, L loop on/off, Esc quit."""
    def __init__(self, cfg: AppConfig, sequence, title: str = "tinyseq",
                 loop: bool = False, volume: float = 1.0):
        self.cfg = cfg
        self.renderer = Renderer(cfg.monitor, title=title)
        self.context = PygameContext()
        self.seq = Sequencer(self.context, sequence, cfg=cfg)
        self.title = title
        self.loop = loop
        self.volume = volume

    def toggle_play(self):
        if self.seq.is_playing():
            self.seq.stop()
        else:
            self.seq.play(self.loop, self.volume)

    def run(self):
        running = True
        try:
            while running:
                self.renderer.tick(self.cfg.monitor.fps)
                for e in pygame.event.get():
                    if e.type == pygame.QUIT:
                        running = False
                    elif e.type == pygame.KEYDOWN:
                        if e.key == pygame.K_ESCAPE:
                            running = False
                        elif e.key == pygame.K_SPACE:
                            self.toggle_play()
                        elif e.key == pygame.K_l:
                            self.loop = not self.loop
                            self.seq.set_loop(self.loop)
                            log.info("loop %s", "on" if self.loop else "off")
                if not running:
                    break

                self.context.pump()

                self.renderer.begin_frame()
                if self.seq.is_playing():
                    t = self.seq.current_time()
                    pos = f"{t:7.2f}s / {self.seq.duration:.2f}s"
                    frac = t / self.seq.duration if self.seq.duration > 0 else 0.0
                else:
                    pos, frac = f"stopped / {self.seq.duration:.2f}s", 0.0
                right = "  |  ".join([
                    f"PLAY: {'ON' if self.seq.is_playing() else 'OFF'}",
                    f"LOOP: {'ON' if self.loop else 'OFF'}",
                    f"PASS: {self.seq.loop_count}",
                    pos,
                ])
                self.renderer.draw_status_bar(left_text=self.title, right_info_text=right)
                self.renderer.draw_progress(frac)
                self.renderer.draw_meters(sample_meters(self.seq))
                self.renderer.end_frame()
        except Exception as e:
            log_exception("monitor loop", e)
            raise
        finally:
            self.seq.stop()
            pygame.quit()
