from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PrintType(str, Enum):
    none = "none"
    strip = "strip"
    custom = "custom"


class SessionCreateRequest(BaseModel):
    session_code: Optional[str] = None
    total_shots: Optional[int] = Field(default=None, ge=1)
    countdown_seconds: Optional[int] = Field(default=None, ge=1)
    interval_seconds: Optional[int] = Field(default=None, ge=0)
    frame_slots: Optional[int] = None
    print_type: PrintType = PrintType.strip
    print_count: int = Field(default=1, ge=0)


class PhotoSelectionRequest(BaseModel):
    selected_indices: List[int]


class TemplateSelectionRequest(BaseModel):
    template_id: str


class CameraDeviceRequest(BaseModel):
    device_id: str


class SessionCreateResponse(BaseModel):
    session_id: str
    session_code: Optional[str]
    phase: str
    total_shots: int
    countdown_seconds: int
    interval_seconds: int


class SessionStatusResponse(BaseModel):
    session_id: Optional[str]
    session_code: Optional[str] = None
    phase: Optional[str] = None
    current_shot: int = 0
    total_shots: int = 0
    countdown: Optional[int] = None
    message: str = ""
    photo_count: int
    capture_complete: bool
    required_selection: int = 0
    selected_photos: List[int] = []
    selection_complete: bool
    template_id: Optional[str] = None
    last_error: Optional[str] = None
    photos: List[str] = []


class CompositePreviewResponse(BaseModel):
    success: bool
    template_id: str
    collage: str


class SessionFinalizeResponse(BaseModel):
    success: bool
    filename: str
    download_url: str
    collage: str
    animation_filename: Optional[str] = None
    qr_code_url: Optional[str] = None
    offline: bool = False
    printed: bool = False


class PrintResponse(BaseModel):
    success: bool
    prints_done: int
    max_prints: int
