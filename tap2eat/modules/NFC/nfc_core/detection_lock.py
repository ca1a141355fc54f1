"""Duplicate-suppression lock for tag detections.

One physical tap can produce several hardware reads in quick succession.
The lock admits one detection at a time and keeps refusing new ones for a
cooldown window after the previous detection finished processing.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional

from tap2eat.core.asyncio_utils import create_logged_task
from tap2eat.core.logging_utils import get_module_logger

logger = get_module_logger("DetectionLock")


class DetectionState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COOLING_DOWN = "cooling_down"


class DetectionLock:
    """Explicit ``IDLE -> PROCESSING -> COOLING_DOWN -> IDLE`` state machine."""

    def __init__(self) -> None:
        self._state = DetectionState.IDLE
        self._cooldown_task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> DetectionState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is not DetectionState.IDLE

    def try_acquire(self) -> bool:
        """Enter PROCESSING if idle. Returns False (detection dropped) otherwise."""
        if self._state is not DetectionState.IDLE:
            logger.debug("Detection dropped while %s", self._state.value)
            return False
        self._set_state(DetectionState.PROCESSING)
        return True

    def release_after(self, delay: float) -> None:
        """Leave PROCESSING; become IDLE again after ``delay`` seconds."""
        if self._state is not DetectionState.PROCESSING:
            logger.debug("release_after ignored in state %s", self._state.value)
            return
        if delay <= 0:
            self._set_state(DetectionState.IDLE)
            return
        self._set_state(DetectionState.COOLING_DOWN)
        self._cooldown_task = create_logged_task(
            self._cool_down(delay),
            logger=logger,
            context="DetectionLock.cooldown",
        )

    def reset(self) -> None:
        """Cancel any cooldown and return to IDLE immediately."""
        task, self._cooldown_task = self._cooldown_task, None
        if task is not None and not task.done():
            task.cancel()
        self._set_state(DetectionState.IDLE)

    async def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until the lock is IDLE. Returns False on timeout."""
        if self._state is DetectionState.IDLE:
            return True
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _cool_down(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._state is DetectionState.COOLING_DOWN:
            self._set_state(DetectionState.IDLE)
        self._cooldown_task = None

    def _set_state(self, state: DetectionState) -> None:
        if state is self._state:
            return
        logger.debug("%s -> %s", self._state.value, state.value)
        self._state = state
        if state is DetectionState.IDLE:
            self._idle.set()
        else:
            self._idle.clear()


__all__ = ["DetectionLock", "DetectionState"]
