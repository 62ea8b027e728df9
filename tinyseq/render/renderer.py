# render/renderer.py
import logging
import math
from typing import List, Optional

import pygame

from tinyseq.config import MonitorConfig

STATUS_H = 36
METER_GAP = 10
LABEL_W = 140
FREQ_LO, FREQ_HI = 20.0, 8000.0  # meter scale, log

WAVE_COLORS = {
    "sine": (80, 200, 120),
    "square": (90, 160, 255),
    "sawtooth": (255, 170, 80),
    "triangle": (200, 120, 255),
    "noise": (180, 180, 190),
}


class TrackMeter:
    """One row of the monitor: current gain and frequency of a track."""
    def __init__(self, name: str, wave: str, gain: float, frequency: Optional[float]):
        self.name = name
        self.wave = wave
        self.gain = gain
        self.frequency = frequency


class Renderer:
    def __init__(self, cfg: MonitorConfig, title: str = "tinyseq"):
        pygame.init()
        self.cfg = cfg
        self.screen = pygame.display.set_mode((cfg.window_w, cfg.window_h))
        pygame.display.set_caption(title)
        self.font = pygame.font.SysFont("consolas", 18)
        self.font_small = pygame.font.SysFont("consolas", 14)
        self.clock = pygame.time.Clock()

    def tick(self, fps=60) -> float:
        return self.clock.tick(fps) / 1000.0

    def begin_frame(self):
        self.screen.fill((12, 12, 14))

    def end_frame(self):
        pygame.display.flip()

    def draw_status_bar(self, left_text: str = "", right_info_text: str = ""):
        pygame.draw.rect(self.screen, (24, 24, 28), (0, 0, self.cfg.window_w, STATUS_H))
        pygame.draw.line(self.screen, (60, 60, 66), (0, STATUS_H), (self.cfg.window_w, STATUS_H), 1)
        if left_text:
            surf = self.font_small.render(left_text, True, (220, 220, 230))
            self.screen.blit(surf, (10, (STATUS_H - surf.get_height())//2))
        if right_info_text:
            right = self.font_small.render(right_info_text, True, (180, 180, 190))
            self.screen.blit(right, (self.cfg.window_w - right.get_width() - 10,
                                     (STATUS_H - right.get_height())//2))

    def draw_progress(self, fraction: float):
        w = self.cfg.window_w
        y = STATUS_H + 4
        pygame.draw.rect(self.screen, (34, 34, 40), (10, y, w - 20, 6), border_radius=3)
        fill = int((w - 20) * max(0.0, min(1.0, fraction)))
        if fill > 0:
            pygame.draw.rect(self.screen, (255, 240, 170), (10, y, fill, 6), border_radius=3)

    # ------- meters -------
    def draw_meters(self, meters: List[TrackMeter]):
        y = STATUS_H + 20
        mh = self.cfg.meter_h
        bar_w = self.cfg.window_w - LABEL_W - 20
        for m in meters:
            if y + mh > self.cfg.window_h:
                logging.debug("Monitor too small, %d meter(s) hidden", len(meters))
                break
            label = self.font.render(m.name, True, (220, 220, 230))
            self.screen.blit(label, (10, y + 4))
            sub = self.font_small.render(m.wave, True, (150, 150, 160))
            self.screen.blit(sub, (10, y + 26))

            color = WAVE_COLORS.get(m.wave, (200, 200, 200))
            half = (mh - 6) // 2
            # gain
            pygame.draw.rect(self.screen, (34, 34, 40), (LABEL_W, y, bar_w, half), border_radius=4)
            gw = int(bar_w * max(0.0, min(1.0, m.gain)))
            if gw > 0:
                pygame.draw.rect(self.screen, color, (LABEL_W, y, gw, half), border_radius=4)
            # frequency (log scale)
            fy = y + half + 4
            pygame.draw.rect(self.screen, (34, 34, 40), (LABEL_W, fy, bar_w, half), border_radius=4)
            if m.frequency is not None and m.frequency > 0:
                pos = (math.log(m.frequency) - math.log(FREQ_LO)) / (math.log(FREQ_HI) - math.log(FREQ_LO))
                x = LABEL_W + int(bar_w * max(0.0, min(1.0, pos)))
                pygame.draw.line(self.screen, color, (x, fy), (x, fy + half), 3)
                txt = self.font_small.render(f"{m.frequency:8.2f} Hz", True, (200, 200, 210))
                self.screen.blit(txt, (LABEL_W + bar_w - txt.get_width() - 6, fy))
            y += mh + METER_GAP
