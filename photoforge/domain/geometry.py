# domain/geometry.py
from typing import NamedTuple, Tuple
from pydantic import ConfigDict, field_validator

from photoforge.domain.schema import YamlModel


class PixelRect(NamedTuple):
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


class FPoint(YamlModel):
    """Point relative to the canvas size, both coordinates in [0, 1]."""

    x: float = 0
    y: float = 0

    def transform(self, w: int, h: int) -> Tuple[int, int]:
        return round(self.x * w), round(self.y * h)


class FRect(YamlModel):
    """Rectangle relative to the canvas size.

    An unset (zero) right or bottom edge means "full extent" and is replaced
    by 1 when the rectangle is loaded. Inverted rectangles are accepted here
    and rejected by whoever draws into them.
    """
    model_config = ConfigDict(validate_default=True)

    left: float = 0
    top: float = 0
    right: float = 0
    bottom: float = 0

    @field_validator("right", "bottom")
    @classmethod
    def _full_extent(cls, v: float) -> float:
        return v or 1.0

    def transform(self, w: int, h: int) -> PixelRect:
        return PixelRect(
            round(self.left * w),
            round(self.top * h),
            round(self.right * w),
            round(self.bottom * h),
        )
