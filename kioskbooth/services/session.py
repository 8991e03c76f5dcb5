import logging
import uuid
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, List, Optional

from PIL import Image

from kioskbooth.config import CaptureSettings, Settings, settings as default_settings
from kioskbooth.errors import SelectionError, UnsupportedSlotConfiguration
from kioskbooth.models.photo import PhotoFrame
from kioskbooth.models.session import PrintType, SessionCreateRequest
from kioskbooth.models.template import FrameTemplate
from kioskbooth.services.camera import CameraService, camera_service
from kioskbooth.services.capture import (
    CaptureMachine, Effect, Flash, Phase, PlayCue, ShowCountdown, ShowMessage, StopAudio,
)
from kioskbooth.services.runner import CaptureRunner, Scheduler
from kioskbooth.services.slots import required_selection_count
from kioskbooth.services.websocket import WebSocketManager, websocket_manager

logger = logging.getLogger(__name__)


def effect_message(effect: Effect) -> Optional[dict]:
    if isinstance(effect, ShowCountdown):
        return {"type": "countdown", "remaining": effect.remaining}
    if isinstance(effect, ShowMessage):
        return {"type": "message", "text": effect.text}
    if isinstance(effect, PlayCue):
        return {"type": "cue", "action": "play", "cue": effect.cue.value}
    if isinstance(effect, StopAudio):
        return {"type": "cue", "action": "stop"}
    if isinstance(effect, Flash):
        return {"type": "flash", "on": effect.on}
    return None


@dataclass(eq=False)
class BoothSession:
    session_id: str
    capture: CaptureSettings
    session_code: Optional[str] = None
    frame_slots: Optional[int] = None
    print_type: PrintType = PrintType.strip
    print_count: int = 1
    runner: Optional[CaptureRunner] = None
    photos: List[PhotoFrame] = field(default_factory=list)
    last_error: Optional[str] = None
    template: Optional[FrameTemplate] = None
    selected_indices: List[int] = field(default_factory=list)
    composite: Optional[Image.Image] = None
    saved_filename: Optional[str] = None
    prints_done: int = 0

    @property
    def machine(self) -> Optional[CaptureMachine]:
        return self.runner.machine if self.runner else None

    @property
    def phase(self) -> Phase:
        return self.machine.phase if self.machine else Phase.idle

    @property
    def capture_complete(self) -> bool:
        return self.phase == Phase.finished and bool(self.photos)

    @property
    def slot_count(self) -> Optional[int]:
        if self.frame_slots is not None:
            return self.frame_slots
        return self.template.slot_count if self.template else None

    @property
    def required_selection(self) -> int:
        return required_selection_count(self.slot_count)

    @property
    def selection_complete(self) -> bool:
        try:
            return len(self.selected_indices) == self.required_selection
        except UnsupportedSlotConfiguration:
            return False

    @property
    def max_prints(self) -> int:
        if self.print_type == PrintType.none:
            return 0
        if self.print_type == PrintType.custom:
            return self.print_count
        return 1

    @property
    def can_print(self) -> bool:
        return self.prints_done < self.max_prints

    def selected_photos(self, photos: Optional[List[PhotoFrame]] = None) -> List[PhotoFrame]:
        """Selected frames, taken from ``photos`` (e.g. mirror-corrected copies) when given."""
        source = photos if photos is not None else self.photos
        required = self.required_selection
        if len(self.selected_indices) == required:
            return [source[i] for i in self.selected_indices]
        # nothing to choose from: every captured photo is used
        if not self.selected_indices and len(source) == required:
            return list(source)
        raise SelectionError(f"Must select exactly {required} photos")


class SessionManager:
    def __init__(self, camera: CameraService = camera_service, broadcaster: WebSocketManager = websocket_manager,
                 settings: Settings = default_settings):
        self.camera = camera
        self.broadcaster = broadcaster
        self.settings = settings
        self.active_sessions: Dict[str, BoothSession] = {}
        self.current_session: Optional[str] = None

    def current(self) -> Optional[BoothSession]:
        if self.current_session is None:
            return None
        return self.active_sessions.get(self.current_session)

    def ensure_camera(self) -> None:
        """Open the configured camera if nothing is streaming; raises ``DeviceError``."""
        if not self.camera.is_active:
            self.camera.acquire(self.camera.device_id)

    def create(self, request: SessionCreateRequest, scheduler: Scheduler) -> BoothSession:
        frame_slots = request.frame_slots if request.frame_slots is not None else self.settings.default_frame_slots
        required_selection_count(frame_slots)
        self.ensure_camera()

        previous = self.current()
        if previous is not None:
            self.discard(previous)

        session = BoothSession(
            session_id=str(uuid.uuid4()),
            capture=self.settings.capture_settings(
                total_shots=request.total_shots,
                countdown_seconds=request.countdown_seconds,
                interval_seconds=request.interval_seconds,
            ),
            session_code=request.session_code,
            frame_slots=frame_slots,
            print_type=request.print_type,
            print_count=request.print_count,
        )
        self.active_sessions[session.session_id] = session
        self.current_session = session.session_id

        logger.info("Created session %s: %d shots, %ds countdown, %ds interval", session.session_id,
                    session.capture.total_shots, session.capture.countdown_seconds, session.capture.interval_seconds)
        self.start_capture(session, scheduler)
        return session

    def start_capture(self, session: BoothSession, scheduler: Scheduler) -> None:
        """(Re)start capturing for ``session``, dropping anything captured before."""
        self.ensure_camera()
        if session.runner is not None:
            session.runner.cancel()

        session.photos = []
        session.selected_indices = []
        session.composite = None
        session.saved_filename = None
        session.last_error = None

        session.runner = CaptureRunner(
            CaptureMachine(session.capture),
            self.camera,
            scheduler,
            on_effect=partial(self._on_effect, session),
            on_complete=partial(self._on_complete, session),
            on_error=partial(self._on_error, session),
        )
        session.runner.start()

    def discard(self, session: BoothSession) -> None:
        if session.runner is not None:
            session.runner.cancel()
        self.active_sessions.pop(session.session_id, None)
        if self.current_session == session.session_id:
            self.current_session = None
        logger.info("Discarded session %s", session.session_id)

    def reset(self) -> None:
        for session in list(self.active_sessions.values()):
            self.discard(session)
        self.current_session = None

    def _on_effect(self, session: BoothSession, effect: Effect) -> None:
        message = effect_message(effect)
        if message is not None:
            self.broadcaster.publish({**message, "session_id": session.session_id})

    def _on_complete(self, session: BoothSession, photos: List[PhotoFrame]) -> None:
        session.photos = photos
        logger.info("Capture complete for session %s with %d photos", session.session_id, len(photos))
        self.broadcaster.publish({
            "type": "capture_complete",
            "session_id": session.session_id,
            "photo_count": len(photos),
        })

    def _on_error(self, session: BoothSession, error: Exception) -> None:
        session.last_error = str(error)
        logger.error("Capture error in session %s: %s", session.session_id, error)
        self.broadcaster.publish({
            "type": "capture_error",
            "session_id": session.session_id,
            "error": str(error),
        })


session_manager = SessionManager()
