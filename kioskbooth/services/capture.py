"""Capture session state machine.

``CaptureMachine.tick`` consumes one event and returns the new phase plus the
side effects the driver has to carry out (timers, audio cues, flash, frame
sampling). The machine itself never sleeps, schedules or touches the camera,
so every transition can be exercised with plain events.

    idle -> countdown -> capturing -> countdown ... -> capturing -> finished
    any non-terminal phase -> cancelled
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from kioskbooth.config import CaptureSettings
from kioskbooth.errors import CaptureSampleError
from kioskbooth.models.photo import PhotoFrame

logger = logging.getLogger(__name__)

SHOT_PROMPTS = {
    1: "Big smile! 😊",
    2: "Strike a pose! ✌️",
    3: "Last one, make it the best! 😎",
}
GET_READY = "Get ready..."
SHUTTER_MESSAGE = "Snap! 📸"
DONE_MESSAGE = "Perfect! ✨"

TICK_SECONDS = 1.0


class Phase(str, Enum):
    idle = "idle"
    countdown = "countdown"
    capturing = "capturing"
    finished = "finished"
    cancelled = "cancelled"


TERMINAL_PHASES = (Phase.finished, Phase.cancelled)


class Timer(str, Enum):
    tick = "tick"
    shutter = "shutter"
    interval = "interval"
    completion = "completion"


class Cue(str, Enum):
    timer = "timer"
    shutter = "shutter"


# Events

@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class TimerFired:
    timer: Timer
    shot: int


@dataclass(frozen=True)
class FrameCaptured:
    frame: PhotoFrame


@dataclass(frozen=True)
class CaptureFailed:
    reason: str


@dataclass(frozen=True)
class Cancel:
    pass


Event = Union[Start, TimerFired, FrameCaptured, CaptureFailed, Cancel]


# Effects

@dataclass(frozen=True)
class ShowMessage:
    text: str


@dataclass(frozen=True)
class ShowCountdown:
    remaining: int


@dataclass(frozen=True)
class PlayCue:
    cue: Cue


@dataclass(frozen=True)
class StopAudio:
    pass


@dataclass(frozen=True)
class Flash:
    on: bool


@dataclass(frozen=True)
class Schedule:
    timer: Timer
    delay: float
    shot: int


@dataclass(frozen=True)
class SampleFrame:
    shot: int


@dataclass(frozen=True)
class CancelTimers:
    pass


@dataclass(frozen=True)
class Completed:
    photos: Tuple[PhotoFrame, ...]


@dataclass(frozen=True)
class Failed:
    error: Exception


Effect = Union[ShowMessage, ShowCountdown, PlayCue, StopAudio, Flash, Schedule, SampleFrame,
               CancelTimers, Completed, Failed]


def prompt_for_shot(shot: int) -> str:
    return SHOT_PROMPTS.get(shot, GET_READY)


class CaptureMachine:
    def __init__(self, settings: CaptureSettings):
        self.settings = settings
        self.phase = Phase.idle
        self.photos: List[PhotoFrame] = []
        self.countdown: Optional[int] = None
        self.message = ""
        # what the capturing phase is waiting for: a shutter timer, a frame,
        # the interval before the next shot, or the completion delay
        self._awaiting: Optional[str] = None

    @property
    def current_shot(self) -> int:
        return len(self.photos) + 1

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def tick(self, event: Event) -> Tuple[Phase, List[Effect]]:
        if isinstance(event, Cancel):
            effects = self._cancel()
        elif self.is_terminal:
            effects = self._ignore(event)
        elif isinstance(event, Start):
            effects = self._start() if self.phase == Phase.idle else self._ignore(event)
        elif isinstance(event, TimerFired):
            effects = self._on_timer(event)
        elif isinstance(event, FrameCaptured):
            effects = self._on_frame(event.frame)
        elif isinstance(event, CaptureFailed):
            effects = self._on_capture_failed(event.reason)
        else:
            raise TypeError(f"Unknown capture event: {event!r}")
        return self.phase, effects

    def _ignore(self, event: Event) -> List[Effect]:
        logger.debug("Ignoring %r in phase %s", event, self.phase.value)
        return []

    def _start(self) -> List[Effect]:
        self.photos = []
        return self._begin_countdown()

    def _begin_countdown(self) -> List[Effect]:
        shot = self.current_shot
        self.phase = Phase.countdown
        self.countdown = self.settings.countdown_seconds
        self.message = prompt_for_shot(shot)
        self._awaiting = None
        return [
            ShowMessage(self.message),
            ShowCountdown(self.countdown),
            PlayCue(Cue.timer),
            Schedule(Timer.tick, TICK_SECONDS, shot),
        ]

    def _on_timer(self, event: TimerFired) -> List[Effect]:
        if event.shot != self.current_shot:
            return self._ignore(event)

        if self.phase == Phase.countdown and event.timer == Timer.tick:
            return self._on_countdown_tick()
        if self.phase == Phase.capturing and event.timer.value == self._awaiting:
            if event.timer == Timer.shutter:
                self._awaiting = "frame"
                return [SampleFrame(event.shot)]
            if event.timer == Timer.interval:
                return self._begin_countdown()
            if event.timer == Timer.completion:
                return self._finish()
        return self._ignore(event)

    def _on_countdown_tick(self) -> List[Effect]:
        self.countdown -= 1
        if self.countdown > 0:
            return [ShowCountdown(self.countdown), Schedule(Timer.tick, TICK_SECONDS, self.current_shot)]

        self.phase = Phase.capturing
        self.countdown = None
        self.message = SHUTTER_MESSAGE
        self._awaiting = Timer.shutter.value
        return [
            StopAudio(),
            Flash(True),
            ShowMessage(self.message),
            PlayCue(Cue.shutter),
            Schedule(Timer.shutter, self.settings.shutter_latency, self.current_shot),
        ]

    def _on_frame(self, frame: PhotoFrame) -> List[Effect]:
        if self.phase != Phase.capturing or self._awaiting != "frame":
            return self._ignore(FrameCaptured(frame))

        self.photos.append(frame)
        logger.info("Captured shot %d of %d", len(self.photos), self.settings.total_shots)

        if len(self.photos) < self.settings.total_shots:
            self._awaiting = Timer.interval.value
            return [
                Flash(False),
                Schedule(Timer.interval, self.settings.interval_seconds, self.current_shot),
            ]

        self.message = DONE_MESSAGE
        self._awaiting = Timer.completion.value
        return [
            Flash(False),
            StopAudio(),
            ShowMessage(self.message),
            Schedule(Timer.completion, self.settings.completion_delay, self.current_shot),
        ]

    def _on_capture_failed(self, reason: str) -> List[Effect]:
        if self.phase != Phase.capturing or self._awaiting != "frame":
            return self._ignore(CaptureFailed(reason))

        logger.warning("Capture of shot %d failed: %s", self.current_shot, reason)
        self.phase = Phase.idle
        self.countdown = None
        self.message = ""
        self._awaiting = None
        return [Flash(False), StopAudio(), Failed(CaptureSampleError(reason))]

    def _finish(self) -> List[Effect]:
        self.phase = Phase.finished
        self._awaiting = None
        return [Completed(tuple(self.photos))]

    def _cancel(self) -> List[Effect]:
        if self.is_terminal:
            return []
        logger.info("Capture cancelled in phase %s", self.phase.value)
        self.phase = Phase.cancelled
        self.countdown = None
        self._awaiting = None
        return [CancelTimers(), StopAudio(), Flash(False)]
