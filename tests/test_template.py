"""Tests for catalog template parsing."""

import pytest
from pydantic import ValidationError

from kioskbooth.models.template import FrameTemplate, LegacyColumnConfig, SlotListConfig, parse_frame_config


def test_slot_list_payload_becomes_slot_config() -> None:
    template = FrameTemplate.from_catalog({
        "id": 7,
        "name": "Duo",
        "image_url": "https://cdn.example/duo.png",
        "config": {"type": "slots", "slots": [
            {"x": 0, "y": 0, "width": 100, "height": 80},
            {"x": 0, "y": 100, "width": 100, "height": 80},
        ]},
    })

    assert template.id == "7"
    assert isinstance(template.config, SlotListConfig)
    assert template.slot_count == 2


def test_declared_frame_slots_win_over_rectangle_count() -> None:
    template = FrameTemplate.from_catalog({
        "id": "s",
        "image_url": "s.png",
        "frame_slots": "6",
        "config": {"slots": [{"x": 0, "y": 0, "width": 10, "height": 10}]},
    })

    assert template.slot_count == 6


def test_legacy_payload_uses_defaults_and_quarter_columns() -> None:
    template = FrameTemplate.from_catalog({"id": "old", "image_url": "old.jpg", "config": {"gap": 30}})

    assert isinstance(template.config, LegacyColumnConfig)
    assert template.slot_count is None
    assert template.config.gap == 30
    assert template.config.photo_width == 800
    assert template.config.centers(1000) == [250.0, 750.0]


def test_empty_slot_list_falls_back_to_legacy_layout() -> None:
    template = FrameTemplate.from_catalog({"id": "x", "image_url": "x.jpg", "config": {"slots": []}})

    assert isinstance(template.config, LegacyColumnConfig)


def test_single_configured_column() -> None:
    config = FrameTemplate.from_catalog({
        "id": "one", "image_url": "one.jpg", "config": {"left_center_x": 400, "right_center_x": None},
    }).config

    assert config.centers(1200) == [400]


def test_undeclared_column_keeps_its_default_center() -> None:
    left_only = parse_frame_config({"top_margin": 10, "gap": 10, "photo_width": 100, "photo_height": 100,
                                    "left_center_x": 100})
    right_only = parse_frame_config({"right_center_x": 500})

    assert left_only.centers(800) == [100, 600.0]
    assert right_only.centers(800) == [200.0, 500]


def test_explicit_null_drops_only_that_column() -> None:
    assert parse_frame_config({"left_center_x": 100, "right_center_x": None}).centers(800) == [100]
    assert parse_frame_config({"left_center_x": None}).centers(800) == [600.0]


def test_both_columns_explicitly_null_centers_a_single_column() -> None:
    config = FrameTemplate.from_catalog({
        "id": "mid", "image_url": "mid.jpg", "config": {"left_center_x": None, "right_center_x": None},
    }).config

    assert config.centers(1200) == [600.0]


def test_non_numeric_column_center_is_invalid() -> None:
    with pytest.raises(ValidationError):
        parse_frame_config({"left_center_x": "middle"})


def test_zero_sized_slot_is_invalid() -> None:
    with pytest.raises(ValidationError):
        FrameTemplate.from_catalog({
            "id": "bad", "image_url": "bad.jpg", "config": {"slots": [{"x": 0, "y": 0, "width": 0, "height": 5}]},
        })
