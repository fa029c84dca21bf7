# services/countdown.py
from __future__ import annotations
import time
from typing import Callable, Optional

from loguru import logger

from puzzles.eco_sort import EcoSortChallenge
from services.game_state import TICK_INTERVAL_SEC

Callback = Callable[[EcoSortChallenge], None]


class Countdown:
    """
    One-second clock driving ``EcoSortChallenge.tick``.

    ``run`` is meant for a background task (``socketio.start_background_task``)
    and stops on its own once the verdict leaves pending. ``cancel`` releases
    the subscription; only the first call does anything, whether it comes
    from the verdict or from the widget being disposed.
    """

    def __init__(
        self,
        challenge: EcoSortChallenge,
        on_tick: Optional[Callback] = None,
        on_release: Optional[Callback] = None,
        sleep: Callable[[float], None] = time.sleep,
        interval: float = TICK_INTERVAL_SEC,
        name: str = "",
    ):
        self.challenge = challenge
        self.interval = interval
        self.name = name
        self._on_tick = on_tick
        self._on_release = on_release
        self._sleep = sleep
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def run(self) -> None:
        logger.debug("[Countdown] {} started ({}s)", self.name, self.challenge.time_remaining)
        while not self._released:
            self._sleep(self.interval)
            # cancelled while asleep: the challenge may already be gone
            if self._released:
                break
            if self.challenge.tick() and self._on_tick:
                self._on_tick(self.challenge)
            if self.challenge.is_over:
                self.cancel()

    def cancel(self) -> bool:
        if self._released:
            return False
        self._released = True
        logger.debug("[Countdown] {} released at {}s", self.name, self.challenge.time_remaining)
        if self._on_release:
            self._on_release(self.challenge)
        return True
