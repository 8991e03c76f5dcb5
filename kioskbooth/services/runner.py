import logging
from collections import deque
from typing import Any, Callable, Dict, List, Optional, Protocol

from kioskbooth.errors import CaptureSampleError
from kioskbooth.models.photo import PhotoFrame
from kioskbooth.services.capture import (
    Cancel, CancelTimers, CaptureFailed, CaptureMachine, Completed, Effect, Event, Failed,
    FrameCaptured, Phase, SampleFrame, Schedule, Start, Timer, TimerFired,
)

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Anything with ``asyncio.AbstractEventLoop.call_later`` semantics."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Any:
        ...


class FrameSource(Protocol):
    def sample_frame(self, sequence: int) -> PhotoFrame:
        ...


class CaptureRunner:
    """Drives a ``CaptureMachine`` from timers and the camera.

    Events are queued and handled one at a time, so effects that produce new
    events (frame sampling) never re-enter ``tick``.
    """

    def __init__(self, machine: CaptureMachine, frame_source: FrameSource, scheduler: Scheduler,
                 on_effect: Optional[Callable[[Effect], None]] = None,
                 on_complete: Optional[Callable[[List[PhotoFrame]], None]] = None,
                 on_error: Optional[Callable[[Exception], None]] = None):
        self.machine = machine
        self.frame_source = frame_source
        self.scheduler = scheduler
        self.on_effect = on_effect
        self.on_complete = on_complete
        self.on_error = on_error
        self._timers: Dict[Timer, Any] = {}
        self._queue = deque()
        self._draining = False

    @property
    def phase(self) -> Phase:
        return self.machine.phase

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def start(self) -> None:
        self.feed(Start())

    def cancel(self) -> None:
        self._queue.clear()
        self.feed(Cancel())
        self._cancel_timers()

    def feed(self, event: Event) -> None:
        self._queue.append(event)
        if self._draining:
            return
        self._draining = True
        try:
            while self._queue:
                _, effects = self.machine.tick(self._queue.popleft())
                for effect in effects:
                    self._apply(effect)
        finally:
            self._draining = False

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, Schedule):
            self._schedule(effect)
        elif isinstance(effect, SampleFrame):
            self._sample(effect.shot)
        elif isinstance(effect, CancelTimers):
            self._cancel_timers()
        elif isinstance(effect, Completed):
            if self.on_complete:
                self.on_complete(list(effect.photos))
        elif isinstance(effect, Failed):
            if self.on_error:
                self.on_error(effect.error)
        else:
            self._notify(effect)

    def _schedule(self, effect: Schedule) -> None:
        previous = self._timers.pop(effect.timer, None)
        if previous is not None:
            previous.cancel()
        self._timers[effect.timer] = self.scheduler.call_later(
            effect.delay, self._fire, effect.timer, effect.shot
        )

    def _fire(self, timer: Timer, shot: int) -> None:
        self._timers.pop(timer, None)
        self.feed(TimerFired(timer, shot))

    def _sample(self, shot: int) -> None:
        try:
            frame = self.frame_source.sample_frame(shot)
        except CaptureSampleError as e:
            self._queue.append(CaptureFailed(str(e)))
        else:
            self._queue.append(FrameCaptured(frame))

    def _cancel_timers(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _notify(self, effect: Effect) -> None:
        if self.on_effect is None:
            return
        try:
            self.on_effect(effect)
        except Exception:
            logger.warning("Capture side effect %r failed", effect, exc_info=True)
