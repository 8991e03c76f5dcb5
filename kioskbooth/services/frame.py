import logging
from typing import Sequence, Union

from PIL import Image

from kioskbooth.models.template import LegacyColumnConfig, SlotListConfig
from kioskbooth.services.cover import paste_cover

logger = logging.getLogger(__name__)


def compose_frame(background: Image.Image, config: Union[SlotListConfig, LegacyColumnConfig],
                  photos: Sequence[Image.Image]) -> Image.Image:
    """Render photos onto a copy of the template background.

    The canvas takes the background's native size. Photos are drawn after the
    background, in slot (or column) order.
    """
    canvas = background.convert("RGB")

    if isinstance(config, SlotListConfig):
        _place_in_slots(canvas, config, photos)
    elif isinstance(config, LegacyColumnConfig):
        _place_in_columns(canvas, config, photos)
    else:
        raise TypeError(f"Unknown frame config: {type(config).__name__}")

    return canvas


def _place_in_slots(canvas: Image.Image, config: SlotListConfig, photos: Sequence[Image.Image]) -> None:
    if len(photos) < len(config.slots):
        logger.debug("%d photos for %d slots, trailing slots stay empty", len(photos), len(config.slots))
    for slot, photo in zip(config.slots, photos):
        paste_cover(canvas, photo, slot.box)


def _place_in_columns(canvas: Image.Image, config: LegacyColumnConfig, photos: Sequence[Image.Image]) -> None:
    # Each column repeats the whole sequence.
    for center_x in config.centers(canvas.width):
        x = center_x - config.photo_width / 2
        y = config.top_margin
        for photo in photos:
            paste_cover(canvas, photo, (x, y, config.photo_width, config.photo_height))
            y += config.photo_height + config.gap
