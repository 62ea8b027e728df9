# audio/live.py
import pygame

from tinyseq.audio.offline import OfflineContext


class PygameContext(OfflineContext):
    """Recording context whose clock is pygame's millisecond timer.

    Automation is kept (and sampled by the monitor) but not rendered.
    Call ``pump()`` once per frame to deliver ended notifications.
    """
    def __init__(self, sample_rate: int = 44100, seed=None):
        if not pygame.get_init():
            pygame.init()
        self._origin_ms = pygame.time.get_ticks()
        super().__init__(sample_rate=sample_rate, start_time=0.0, seed=seed)

    @property
    def current_time(self) -> float:
        return (pygame.time.get_ticks() - self._origin_ms) / 1000.0

    def advance_to(self, t: float) -> int:
        raise RuntimeError("PygameContext follows the wall clock; use pump()")

    def pump(self) -> int:
        return self._deliver_until(self.current_time)
