from __future__ import annotations

import logging
import time
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameRequester(Protocol):
    def request(self, callback: FrameCallback) -> int:
        """Schedule callback for the next display refresh, returning a handle."""
        ...

    def cancel(self, handle: int) -> None: ...


class ManualFrameRequester:
    """Frame requests fired explicitly, e.g. from a host loop or a test."""

    def __init__(self):
        self.pending: dict[int, FrameCallback] = {}
        self._next_handle = 1

    def request(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self.pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self.pending.pop(handle, None)

    def fire(self, timestamp: float) -> int:
        """Run every callback pending right now. Returns how many ran."""
        callbacks = list(self.pending.values())
        self.pending.clear()
        for callback in callbacks:
            callback(timestamp)
        return len(callbacks)


class TimerFrameRequester(ManualFrameRequester):
    """Display-refresh stand-in driven by a fixed-rate timer."""

    def __init__(self, refresh_hz: float = 60.0, clock: Callable[[], float] = time.perf_counter):
        super().__init__()
        self.refresh_interval = 1.0 / refresh_hz
        self.clock = clock

    def now(self) -> float:
        return self.clock() * 1000.0

    def run(self, until: Callable[[], bool], before_frame: Callable[[], None] | None = None) -> None:
        """Fire pending callbacks once per refresh until `until()` is true or nothing is pending."""
        next_refresh = self.clock()
        while self.pending and not until():
            delay = next_refresh - self.clock()
            if delay > 0:
                time.sleep(delay)
            next_refresh = max(next_refresh + self.refresh_interval, self.clock())
            if before_frame is not None:
                before_frame()
            self.fire(self.now())


@dataclass
class EngineState:
    is_active: bool = False
    last_tick_timestamp: float = 0.0
    frames_drawn: int = 0


class Scheduler:
    """Throttles display-refresh callbacks down to a target frame rate."""

    def __init__(self, on_tick: Callable[[float], bool], requester: FrameRequester, target_fps: int = 30):
        self.on_tick = on_tick
        self.requester = requester
        self.state = EngineState()
        self._handle: int | None = None
        self._generation = 0
        self.target_fps = target_fps

    @property
    def target_fps(self) -> int:
        return self._target_fps

    @target_fps.setter
    def target_fps(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f"target_fps must be positive, got {value}")
        self._target_fps = value
        self.interval = 1000.0 / value

    @property
    def active(self) -> bool:
        return self.state.is_active

    def start(self) -> None:
        if self.state.is_active:
            return
        logger.debug("Starting frame loop at %d fps", self.target_fps)
        self.state.is_active = True
        self._schedule()

    def stop(self) -> None:
        if not self.state.is_active and self._handle is None:
            return
        logger.debug("Stopping frame loop after %d frames", self.state.frames_drawn)
        self.state.is_active = False
        self._generation += 1
        if self._handle is not None:
            self.requester.cancel(self._handle)
            self._handle = None

    @contextmanager
    def running(self):
        self.start()
        try:
            yield self
        finally:
            self.stop()

    def _schedule(self) -> None:
        if self._handle is not None:
            return
        generation = self._generation
        self._handle = self.requester.request(lambda timestamp: self.on_frame(timestamp, generation))

    def on_frame(self, timestamp: float, generation: int | None = None) -> None:
        # Callbacks issued before the last stop() are stale
        if generation is not None and generation != self._generation:
            return
        self._handle = None
        if not self.state.is_active:
            return

        elapsed = timestamp - self.state.last_tick_timestamp
        if elapsed < self.interval:
            self._schedule()
            return
        # Carry the remainder over so the long-run rate does not drift
        self.state.last_tick_timestamp = timestamp - (elapsed % self.interval)

        try:
            if self.on_tick(timestamp):
                self.state.frames_drawn += 1
        except Exception:
            logger.warning("Frame at %.1fms failed, skipping", timestamp, exc_info=True)

        if self.state.is_active:
            self._schedule()
