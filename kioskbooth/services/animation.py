import io
from typing import List, Optional, Protocol, Sequence, Tuple

from PIL import Image

from kioskbooth.services.cover import paste_cover


class GifEncoder(Protocol):
    def encode(self, frames: Sequence[Image.Image], duration_ms: int) -> bytes:
        """Encode equally timed frames into a looping animation."""


class PillowGifEncoder:
    def encode(self, frames: Sequence[Image.Image], duration_ms: int) -> bytes:
        buffer = io.BytesIO()
        frames[0].save(
            buffer,
            format="GIF",
            save_all=True,
            append_images=list(frames[1:]),
            duration=duration_ms,
            loop=0,
        )
        return buffer.getvalue()


def build_animation_frames(photos: Sequence[Image.Image], size: Tuple[int, int]) -> List[Image.Image]:
    frames = []
    for photo in photos:
        frame = Image.new("RGB", size, "white")
        paste_cover(frame, photo, (0, 0, size[0], size[1]))
        frames.append(frame)
    return frames


def render_animation(photos: Sequence[Image.Image], size: Tuple[int, int] = (800, 600), frame_ms: int = 500,
                     encoder: Optional[GifEncoder] = None) -> bytes:
    if not photos:
        raise ValueError("No photos provided")
    encoder = encoder or PillowGifEncoder()
    return encoder.encode(build_animation_frames(photos, size), frame_ms)
