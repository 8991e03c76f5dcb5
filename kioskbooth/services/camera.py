import cv2
import base64
import logging
from typing import Callable, Dict, List, Optional, Union

from PIL import Image

from kioskbooth.config import settings
from kioskbooth.errors import CaptureSampleError, DeviceError
from kioskbooth.models.photo import PhotoFrame

logger = logging.getLogger(__name__)


def parse_device_selector(device_selector: Union[str, int]) -> Union[str, int]:
    """Numeric selectors are OpenCV device indices, anything else a path or URL."""
    if isinstance(device_selector, int):
        return device_selector
    selector = device_selector.strip()
    return int(selector) if selector.isdigit() else selector


class CameraService:
    def __init__(self, device_id: str = settings.camera_device_id, mirror: bool = settings.mirror_preview,
                 capture_factory: Callable = cv2.VideoCapture):
        self.device_id = device_id
        self.mirror = mirror
        self.capture_factory = capture_factory
        self.camera = None
        self.is_active = False

    def initialize(self) -> bool:
        try:
            self.acquire(self.device_id)
            return True
        except DeviceError as e:
            logger.error("Camera initialization failed: %s", e)
            return False

    def acquire(self, device_selector: Union[str, int]) -> None:
        # Only one stream at a time: release the old device before opening the next.
        self.cleanup()

        camera = self.capture_factory(parse_device_selector(device_selector))
        if not camera.isOpened():
            camera.release()
            raise DeviceError(f"Could not open camera {device_selector!r}; is it in use?")

        camera.set(cv2.CAP_PROP_FRAME_WIDTH, settings.camera_width)
        camera.set(cv2.CAP_PROP_FRAME_HEIGHT, settings.camera_height)
        camera.set(cv2.CAP_PROP_FPS, settings.camera_fps)

        self.camera = camera
        self.device_id = str(device_selector)
        self.is_active = True
        logger.info("Camera %s active", self.device_id)

    def switch_device(self, device_selector: Union[str, int]) -> None:
        if self.is_active and str(device_selector) == self.device_id:
            return
        self.acquire(device_selector)

    def list_devices(self, limit: int = settings.camera_probe_limit) -> List[Dict[str, object]]:
        devices = []
        for index in range(limit):
            if self.is_active and self.device_id == str(index):
                devices.append({"device_id": str(index), "label": f"Camera {index}", "active": True})
                continue
            probe = self.capture_factory(index)
            try:
                if probe.isOpened():
                    devices.append({"device_id": str(index), "label": f"Camera {index}", "active": False})
            finally:
                probe.release()
        return devices

    def _read(self):
        if not self.is_active or self.camera is None:
            return None
        ret, frame = self.camera.read()
        if not ret:
            return None
        if self.mirror:
            frame = cv2.flip(frame, 1)
        return frame

    def sample_frame(self, sequence: int) -> PhotoFrame:
        if not self.is_active or self.camera is None:
            raise CaptureSampleError("No active video source")

        frame = self._read()
        if frame is None:
            raise CaptureSampleError("Failed to capture photo")

        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        return PhotoFrame(image=Image.fromarray(rgb), sequence=sequence)

    def get_preview_frame(self) -> Optional[str]:
        frame = self._read()
        if frame is None:
            return None

        height, width = frame.shape[:2]
        preview_height = int(height * settings.preview_width / width)
        frame = cv2.resize(frame, (settings.preview_width, preview_height))

        _, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, settings.preview_quality])
        return base64.b64encode(buffer).decode('utf-8')

    def cleanup(self):
        if self.camera:
            self.camera.release()
        self.camera = None
        self.is_active = False


camera_service = CameraService()
