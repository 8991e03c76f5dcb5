import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime

from PIL import Image, ImageOps


@dataclass(frozen=True, eq=False)
class PhotoFrame:
    """One captured still. Compared by identity, never mutated."""

    image: Image.Image
    sequence: int
    frame_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    captured_at: datetime = field(default_factory=datetime.now)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def mirrored(self) -> "PhotoFrame":
        return replace(self, image=ImageOps.mirror(self.image), frame_id=uuid.uuid4().hex)
