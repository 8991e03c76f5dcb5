from PIL import Image, ImageDraw, ImageFont
import base64
import io
import logging
import os
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from kioskbooth.config import settings
from kioskbooth.errors import PersistenceError
from kioskbooth.models.photo import PhotoFrame
from kioskbooth.models.template import FrameTemplate
from kioskbooth.services.animation import GifEncoder, render_animation
from kioskbooth.services.frame import compose_frame
from kioskbooth.services.slots import expand_selection

logger = logging.getLogger(__name__)

FONT_PATHS = [
    "arial.ttf",
    "/System/Library/Fonts/Arial.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
]


class PhotoService:
    def __init__(self, photos_dir: str = settings.photos_dir, quality: int = settings.photo_quality,
                 mirror_correction: bool = settings.mirror_correction,
                 output_size: Optional[Tuple[int, int]] = settings.output_size,
                 animation_size: Tuple[int, int] = settings.animation_size,
                 frame_ms: int = settings.gif_frame_ms,
                 watermark_text: str = settings.watermark_text,
                 encoder: Optional[GifEncoder] = None):
        self.photos_dir = photos_dir
        self.quality = quality
        self.mirror_correction = mirror_correction
        self.output_size = output_size
        self.animation_size = animation_size
        self.frame_ms = frame_ms
        self.watermark_text = watermark_text
        self.encoder = encoder

    def prepare_photos(self, photos: Sequence[PhotoFrame]) -> List[PhotoFrame]:
        """Undo the mirrored live preview. The result replaces the originals downstream."""
        if not self.mirror_correction:
            return list(photos)
        return [photo.mirrored() for photo in photos]

    def compose(self, selection: Sequence[PhotoFrame], template: FrameTemplate, background: Image.Image,
                slot_count: Optional[int] = None) -> Image.Image:
        if slot_count is None:
            slot_count = template.slot_count
        placement = expand_selection(selection, slot_count)

        logger.info("Composing %d photos into template %s (%s, %s slots)",
                    len(placement), template.id, template.config.kind, slot_count)
        composite = compose_frame(background, template.config, [photo.image for photo in placement])

        if self.output_size and composite.size != self.output_size:
            composite = composite.resize(self.output_size, Image.Resampling.LANCZOS)
        return composite

    def create_animation(self, photos: Sequence[PhotoFrame]) -> bytes:
        return render_animation(
            [photo.image for photo in photos],
            size=self.animation_size,
            frame_ms=self.frame_ms,
            encoder=self.encoder,
        )

    def watermark(self, image: Image.Image) -> Image.Image:
        img = image.convert("RGBA")
        font_size = max(12, int(img.height * 0.05))
        font = self._load_font(font_size)

        overlay = Image.new("RGBA", img.size, (255, 255, 255, 0))
        draw = ImageDraw.Draw(overlay)
        text_bbox = draw.textbbox((0, 0), self.watermark_text, font=font)
        text_width = text_bbox[2] - text_bbox[0]
        text_height = text_bbox[3] - text_bbox[1]

        padding = font_size // 2
        text_x = img.width - text_width - padding
        text_y = img.height - text_height - padding

        draw.text((text_x + 2, text_y + 2), self.watermark_text, fill=(0, 0, 0, 128), font=font)
        draw.text((text_x, text_y), self.watermark_text, fill=(255, 255, 255, 204), font=font)

        return Image.alpha_composite(img, overlay).convert("RGB")

    def _load_font(self, size: int):
        for font_path in FONT_PATHS:
            try:
                return ImageFont.truetype(font_path, size)
            except OSError:
                continue
        return ImageFont.load_default()

    def encode_jpeg(self, image: Image.Image, quality: Optional[int] = None) -> bytes:
        buffer = io.BytesIO()
        image.convert("RGB").save(buffer, format="JPEG", quality=quality or self.quality)
        return buffer.getvalue()

    def to_base64(self, image: Image.Image) -> str:
        return base64.b64encode(self.encode_jpeg(image)).decode("utf-8")

    def save_photo(self, data: bytes, filename: str = None, suffix: str = ".jpg") -> str:
        if filename is None:
            filename = f"photo_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}{suffix}"

        filepath = os.path.join(self.photos_dir, filename)
        try:
            os.makedirs(self.photos_dir, exist_ok=True)
            with open(filepath, "wb") as f:
                f.write(data)
        except OSError as e:
            raise PersistenceError(f"Could not save {filename}: {e}") from e

        logger.info("Saved %s", filepath)
        return filename


photo_service = PhotoService()
