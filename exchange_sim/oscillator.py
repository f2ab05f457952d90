"""Background task that randomly perturbs listed prices on a fixed cadence."""

from __future__ import annotations

import random
import threading
from decimal import ROUND_HALF_UP, Decimal, localcontext

from loguru import logger

from exchange_sim.core.constants import (
    DEFAULT_MAX_TICK_SWING,
    DEFAULT_TICK_SECONDS,
    PRICE_QUANTUM,
)
from exchange_sim.prices import PriceTable


class PriceOscillator:
    """Multiplies every price by ``1 + (rand() - 0.5) * 2 * max_swing`` each tick.

    The loop runs on a daemon thread and waits on a stop event between ticks,
    so ``stop()`` takes effect within one interval. A tick is applied through
    ``PriceTable.apply_tick`` and is therefore all-or-nothing for readers.
    """

    def __init__(
        self,
        prices: PriceTable,
        interval: float = DEFAULT_TICK_SECONDS,
        max_swing: float = DEFAULT_MAX_TICK_SWING,
        rng: random.Random | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if not (0.0 < max_swing < 1.0):
            raise ValueError("max_swing must be between 0 and 1")
        self._prices = prices
        self._interval = interval
        self._max_swing = Decimal(str(max_swing))
        self._rng = rng or random.Random()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._state_lock = threading.Lock()
        self.ticks = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._state_lock:
            if self.is_running:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="price-oscillator",
                daemon=True,
            )
            self._thread.start()
        logger.info("Price oscillator started (interval={}s)", self._interval)

    def stop(self, timeout: float | None = None) -> None:
        """Signal cancellation and wait for the loop to exit."""
        with self._state_lock:
            self._stop_event.set()
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Price oscillator did not stop within {}s", timeout)
                return
            logger.info("Price oscillator stopped after {} ticks", self.ticks)

    def tick(self) -> dict[str, Decimal]:
        """Apply one perturbation to every listed symbol."""
        updated = self._prices.apply_tick(self._perturb)
        self.ticks += 1
        logger.debug("Price tick {} updated {} symbols", self.ticks, len(updated))
        return updated

    def factor(self) -> Decimal:
        """Draw a multiplier in ``[1 - max_swing, 1 + max_swing)``."""
        draw = Decimal(str(self._rng.random())) - Decimal("0.5")
        return Decimal("1") + draw * 2 * self._max_swing

    def _perturb(self, symbol: str, price: Decimal) -> Decimal:
        factor = self.factor()
        with localcontext() as ctx:
            # Every integer digit plus the cents must fit, or quantize() traps.
            ctx.prec = max(ctx.prec, price.adjusted() + 8)
            return (price * factor).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Price tick failed")
