"""Cover-fit drawing: scale to fill, crop the overflowing axis, never letterbox."""

from typing import Tuple

from PIL import Image

Box = Tuple[float, float, float, float]


def cover_crop_box(src_size: Tuple[int, int], dst_size: Tuple[float, float]) -> Box:
    """Return the centered source region whose aspect ratio matches ``dst_size``.

    Wider sources lose equal amounts on the left and right at full height,
    taller sources lose equal amounts on top and bottom at full width.
    """
    src_w, src_h = src_size
    dst_w, dst_h = dst_size
    if src_w <= 0 or src_h <= 0 or dst_w <= 0 or dst_h <= 0:
        raise ValueError(f"Cannot cover-fit {src_size} into {dst_size}")

    img_ratio = src_w / src_h
    target_ratio = dst_w / dst_h

    if img_ratio > target_ratio:
        crop_h = src_h
        crop_w = crop_h * target_ratio
        left = (src_w - crop_w) / 2
        return left, 0.0, left + crop_w, float(crop_h)

    crop_w = src_w
    crop_h = crop_w / target_ratio
    top = (src_h - crop_h) / 2
    return 0.0, top, float(crop_w), top + crop_h


def fit_cover(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    box = cover_crop_box(image.size, size)
    return image.resize(size, Image.Resampling.LANCZOS, box=box)


def paste_cover(canvas: Image.Image, image: Image.Image, rect: Box) -> None:
    """Draw ``image`` cover-fitted into ``rect`` = (x, y, width, height) on ``canvas``."""
    x, y, width, height = rect
    size = (max(1, round(width)), max(1, round(height)))
    fitted = fit_cover(image.convert(canvas.mode), size)
    canvas.paste(fitted, (round(x), round(y)))
