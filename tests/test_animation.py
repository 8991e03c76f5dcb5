"""Tests for GIF rendering."""

import io

import pytest
from PIL import Image, ImageSequence

from kioskbooth.services.animation import build_animation_frames, render_animation

from tests.conftest import SHOT_COLORS


class RecordingEncoder:
    def __init__(self) -> None:
        self.calls = []

    def encode(self, frames, duration_ms):
        self.calls.append((list(frames), duration_ms))
        return b"GIF89a-fake"


def test_one_frame_per_photo_at_fixed_duration() -> None:
    photos = [Image.new("RGB", (160, 120), color) for color in SHOT_COLORS[:3]]

    data = render_animation(photos, size=(80, 60), frame_ms=500)

    gif = Image.open(io.BytesIO(data))
    assert gif.format == "GIF"
    assert gif.size == (80, 60)
    frames = list(ImageSequence.Iterator(gif))
    assert len(frames) == 3
    assert gif.info.get("loop") == 0
    assert all(frame.info.get("duration") == 500 for frame in frames)


def test_frames_keep_photo_order() -> None:
    photos = [Image.new("RGB", (40, 30), color) for color in SHOT_COLORS[:2]]

    frames = build_animation_frames(photos, (80, 60))

    assert [frame.getpixel((40, 30)) for frame in frames] == SHOT_COLORS[:2]


def test_odd_aspect_photos_are_cover_fitted() -> None:
    frames = build_animation_frames([Image.new("RGB", (50, 200), SHOT_COLORS[0])], (80, 60))

    assert frames[0].size == (80, 60)
    assert frames[0].getpixel((0, 0)) == SHOT_COLORS[0]
    assert frames[0].getpixel((79, 59)) == SHOT_COLORS[0]


def test_encoder_is_pluggable() -> None:
    encoder = RecordingEncoder()

    data = render_animation([Image.new("RGB", (10, 10))], size=(8, 6), frame_ms=250, encoder=encoder)

    assert data == b"GIF89a-fake"
    frames, duration = encoder.calls[0]
    assert duration == 250
    assert frames[0].size == (8, 6)


def test_no_photos_is_an_error() -> None:
    with pytest.raises(ValueError, match="No photos"):
        render_animation([])
