"""Shared test fixtures."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from kioskbooth.api.dependencies import (
    get_camera_service, get_photo_service, get_print_service, get_scheduler, get_session_manager,
    get_template_catalog, get_upload_service, get_websocket_manager,
)
from kioskbooth.config import CaptureSettings, Settings
from kioskbooth.errors import CaptureSampleError, DeviceError, TemplateLoadError
from kioskbooth.main import app
from kioskbooth.models.photo import PhotoFrame
from kioskbooth.models.template import FrameTemplate
from kioskbooth.services.photo import PhotoService
from kioskbooth.services.session import SessionManager
from kioskbooth.services.websocket import WebSocketManager

SHOT_COLORS = [(220, 20, 20), (20, 200, 20), (20, 20, 220), (230, 200, 0), (200, 0, 200)]


class _TimerHandle:
    def __init__(self, when: float, seq: int, callback, args) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """Stand-in for the event loop's ``call_later`` with manually advanced time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: List[_TimerHandle] = []
        self._seq = 0

    def call_later(self, delay, callback, *args):
        handle = _TimerHandle(self.now + delay, self._seq, callback, args)
        self._seq += 1
        self._timers.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._timers if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self._timers if not h.cancelled and h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._timers.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target
        self._timers = [h for h in self._timers if not h.cancelled]


@dataclass
class FakeCamera:
    """Camera whose shots are solid colors, one color per shot number, or split into ``halves``."""

    available: bool = True
    fail_on: Tuple[int, ...] = ()
    is_active: bool = False
    device_id: str = "0"
    samples: List[int] = field(default_factory=list)
    log: Optional[List[str]] = None
    preview_frames: List[str] = field(default_factory=list)
    # (left, right) halves for every shot instead of a solid color
    halves: Optional[Tuple[tuple, tuple]] = None

    def acquire(self, device_selector) -> None:
        if not self.available:
            raise DeviceError("Could not open camera; is it in use?")
        self.is_active = True
        self.device_id = str(device_selector)

    def sample_frame(self, sequence: int) -> PhotoFrame:
        self.samples.append(sequence)
        if self.log is not None:
            self.log.append("sample")
        if sequence in self.fail_on:
            raise CaptureSampleError("Failed to capture photo")
        if self.halves is not None:
            image = Image.new("RGB", (160, 120), self.halves[1])
            image.paste(self.halves[0], (0, 0, 80, 120))
            return PhotoFrame(image=image, sequence=sequence)
        color = SHOT_COLORS[(sequence - 1) % len(SHOT_COLORS)]
        return PhotoFrame(image=Image.new("RGB", (160, 120), color), sequence=sequence)

    def get_preview_frame(self) -> Optional[str]:
        if not self.preview_frames:
            raise DeviceError("Camera disconnected")
        return self.preview_frames.pop(0)

    def switch_device(self, device_selector) -> None:
        self.acquire(device_selector)

    def list_devices(self, limit: int = 5) -> List[Dict[str, object]]:
        return [{"device_id": self.device_id, "label": f"Camera {self.device_id}", "active": self.is_active}]

    def cleanup(self) -> None:
        self.is_active = False


@dataclass
class FakeCatalog:
    templates: List[FrameTemplate] = field(default_factory=list)
    broken: set = field(default_factory=set)
    background_size: Tuple[int, int] = (300, 450)
    loads: List[str] = field(default_factory=list)

    async def fetch_templates(self) -> List[FrameTemplate]:
        return list(self.templates)

    async def get(self, template_id: str) -> Optional[FrameTemplate]:
        return next((t for t in self.templates if t.id == template_id), None)

    async def default_template(self) -> Optional[FrameTemplate]:
        return self.templates[0] if self.templates else None

    async def load_background(self, template: FrameTemplate) -> Image.Image:
        self.loads.append(template.id)
        if template.id in self.broken:
            raise TemplateLoadError(f"Could not load template {template.id}: 404")
        return Image.new("RGB", self.background_size, "white")


@dataclass
class FakeUploadService:
    enabled: bool = True
    qr_code_url: Optional[str] = "https://share.example/s/abc"
    photos: List[Tuple[str, int]] = field(default_factory=list)
    frames: List[str] = field(default_factory=list)
    gifs: List[str] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)

    def upload_photo(self, session_code: str, data: bytes, sequence: int) -> None:
        self.photos.append((session_code, sequence))

    def upload_frame(self, session_code: str, data: bytes) -> None:
        self.frames.append(session_code)

    def upload_gif(self, session_code: str, data: bytes) -> None:
        self.gifs.append(session_code)

    async def complete_session(self, session_code: str, timeout: float = 10.0) -> Optional[str]:
        self.completed.append(session_code)
        return self.qr_code_url


@dataclass
class FakePrintService:
    enabled: bool = True
    succeed: bool = True
    printed: List[str] = field(default_factory=list)

    async def print_file(self, path: str) -> bool:
        self.printed.append(path)
        return self.succeed


def strip_template(template_id: str = "strip-6") -> FrameTemplate:
    """Two columns, three rows on a 300x450 card."""
    slots = [
        {"x": 20 + col * 140, "y": 60 + row * 120, "width": 120, "height": 90}
        for row in range(3)
        for col in range(2)
    ]
    return FrameTemplate.from_catalog({
        "id": template_id,
        "name": "Strip",
        "image_url": f"https://cdn.example/{template_id}.jpg",
        "frame_slots": 6,
        "config": {"type": "slots", "slots": slots},
    })


def legacy_template(template_id: str = "classic") -> FrameTemplate:
    return FrameTemplate.from_catalog({
        "id": template_id,
        "name": "Classic",
        "image_url": f"https://cdn.example/{template_id}.jpg",
        "config": {"top_margin": 20, "gap": 10, "photo_width": 120, "photo_height": 90},
    })


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def capture_settings() -> CaptureSettings:
    return CaptureSettings(total_shots=3, countdown_seconds=3, interval_seconds=2)


@pytest.fixture
def photo_service(tmp_path) -> PhotoService:
    return PhotoService(
        photos_dir=str(tmp_path / "photos"),
        output_size=(118, 174),
        animation_size=(80, 60),
        watermark_text="Booth",
    )


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(templates=[strip_template(), legacy_template()])


@pytest.fixture
def uploads() -> FakeUploadService:
    return FakeUploadService()


@pytest.fixture
def printer() -> FakePrintService:
    return FakePrintService()


@pytest.fixture
def session_manager(camera) -> SessionManager:
    settings = Settings(total_shots=3, countdown_seconds=3, interval_seconds=2, default_frame_slots=None)
    return SessionManager(camera=camera, broadcaster=WebSocketManager(), settings=settings)


@pytest.fixture
def client(clock, camera, session_manager, photo_service, catalog, uploads, printer):
    app.dependency_overrides[get_scheduler] = lambda: clock
    app.dependency_overrides[get_camera_service] = lambda: camera
    app.dependency_overrides[get_session_manager] = lambda: session_manager
    app.dependency_overrides[get_photo_service] = lambda: photo_service
    app.dependency_overrides[get_template_catalog] = lambda: catalog
    app.dependency_overrides[get_upload_service] = lambda: uploads
    app.dependency_overrides[get_print_service] = lambda: printer
    app.dependency_overrides[get_websocket_manager] = lambda: WebSocketManager()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_frame():
    def _make(color=(255, 0, 0), size=(160, 120), sequence: int = 1) -> PhotoFrame:
        return PhotoFrame(image=Image.new("RGB", size, color), sequence=sequence)

    return _make


@pytest.fixture
def templates() -> Dict[str, FrameTemplate]:
    return {"strip": strip_template(), "legacy": legacy_template()}
