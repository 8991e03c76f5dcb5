"""Frame templates as served by the backend catalog.

The backend ships two incompatible config shapes. Newer templates carry an
explicit ``slots`` list of rectangles; older ones describe one or two centered
photo columns with margins. Both are parsed into a tagged variant so the
resolver can dispatch on ``kind`` instead of probing optional fields.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

LEGACY_KEYS = ("top_margin", "gap", "photo_width", "photo_height")


class SlotRect(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)

    @property
    def box(self):
        return self.x, self.y, self.width, self.height


class SlotListConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["slots"] = "slots"
    slots: List[SlotRect] = Field(min_length=1)


AUTO = "auto"
# fraction of the canvas width used when a column center is not declared
DEFAULT_CENTERS = {"left_center_x": 0.25, "right_center_x": 0.75}

ColumnCenter = Union[Literal["auto"], float, None]


class LegacyColumnConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["columns"] = "columns"
    top_margin: float = 100
    gap: float = 50
    photo_width: float = Field(default=800, gt=0)
    photo_height: float = Field(default=600, gt=0)
    # "auto" sits at the default fraction of the canvas width, None drops the column.
    left_center_x: ColumnCenter = AUTO
    right_center_x: ColumnCenter = AUTO

    def centers(self, canvas_width: int) -> List[float]:
        centers = []
        for key, fraction in DEFAULT_CENTERS.items():
            value = getattr(self, key)
            if value == AUTO:
                value = canvas_width * fraction
            if value:
                centers.append(value)
        return centers or [canvas_width / 2]


FrameConfig = Annotated[Union[SlotListConfig, LegacyColumnConfig], Field(discriminator="kind")]


class FrameTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    image_url: str
    frame_slots: Optional[int] = None
    config: FrameConfig = Field(default_factory=LegacyColumnConfig)

    @property
    def slot_count(self) -> Optional[int]:
        if self.frame_slots is not None:
            return self.frame_slots
        if isinstance(self.config, SlotListConfig):
            return len(self.config.slots)
        return None

    @classmethod
    def from_catalog(cls, payload: Dict[str, Any]) -> "FrameTemplate":
        """Build a template from the backend's flat JSON shape."""
        raw = payload.get("config") or {}
        frame_slots = payload.get("frame_slots")
        return cls(
            id=str(payload["id"]),
            name=payload.get("name") or "",
            image_url=payload["image_url"],
            frame_slots=int(frame_slots) if frame_slots not in (None, "") else None,
            config=parse_frame_config(raw),
        )


def parse_frame_config(raw: Dict[str, Any]) -> Union[SlotListConfig, LegacyColumnConfig]:
    if raw.get("slots"):
        return SlotListConfig(slots=raw["slots"])

    values = {key: raw[key] for key in LEGACY_KEYS if raw.get(key) is not None}
    # an absent center keeps its default, an explicit null removes that column
    values.update({key: raw[key] for key in DEFAULT_CENTERS if key in raw})
    return LegacyColumnConfig(**values)
