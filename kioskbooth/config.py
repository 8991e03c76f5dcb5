from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class CaptureSettings:
    """Timing of one capture session, fixed when the session starts."""

    total_shots: int = 3
    countdown_seconds: int = 3
    interval_seconds: int = 3
    shutter_latency: float = 0.15
    completion_delay: float = 1.0

    def __post_init__(self):
        if self.total_shots < 1:
            raise ValueError("total_shots must be a positive integer")
        if self.countdown_seconds < 1:
            raise ValueError("countdown_seconds must be a positive integer")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")


class Settings(BaseSettings):
    app_name: str = "KioskBooth"
    app_description: str = "Unattended photobooth kiosk: timed capture, frame composition and sharing"
    debug: bool = False

    host: str = "0.0.0.0"
    port: int = 8000

    camera_device_id: str = "0"
    camera_width: int = 1920
    camera_height: int = 1080
    camera_fps: int = 30
    camera_probe_limit: int = 5
    mirror_preview: bool = True
    preview_width: int = 640
    preview_quality: int = 60
    preview_fps: int = 15

    total_shots: int = 3
    countdown_seconds: int = 3
    interval_seconds: int = 3
    shutter_latency_ms: int = 150
    completion_delay_ms: int = 1000

    photo_quality: int = 95
    photos_dir: str = "booth_data/photos"
    mirror_correction: bool = True
    output_width: Optional[int] = 1181
    output_height: Optional[int] = 1748
    default_frame_slots: Optional[int] = None

    gif_width: int = 800
    gif_height: int = 600
    gif_frame_ms: int = 500

    watermark_text: str = "KioskBooth"

    backend_url: str = "http://127.0.0.1:9000/api/v1/desktop"
    request_timeout: float = 8.0
    completion_timeout: float = 10.0
    test_mode: bool = False

    printer_name: str = ""
    print_copies: int = 1

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def output_size(self) -> Optional[Tuple[int, int]]:
        if not self.output_width or not self.output_height:
            return None
        return self.output_width, self.output_height

    @property
    def animation_size(self) -> Tuple[int, int]:
        return self.gif_width, self.gif_height

    def capture_settings(self, total_shots: Optional[int] = None, countdown_seconds: Optional[int] = None,
                         interval_seconds: Optional[int] = None) -> CaptureSettings:
        """Snapshot the capture timing, applying per-session overrides."""
        return CaptureSettings(
            total_shots=total_shots if total_shots is not None else self.total_shots,
            countdown_seconds=countdown_seconds if countdown_seconds is not None else self.countdown_seconds,
            interval_seconds=interval_seconds if interval_seconds is not None else self.interval_seconds,
            shutter_latency=self.shutter_latency_ms / 1000,
            completion_delay=self.completion_delay_ms / 1000,
        )


settings = Settings()
