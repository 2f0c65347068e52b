"""
Geometry

Small value types shared across the fit engine. Rectangles follow the Pillow
convention for crop boxes: (left, top, right, bottom) with right and bottom
exclusive, so a Rect can be handed straight to Image.crop().
"""

from dataclasses import dataclass
from typing import NamedTuple


class Rect(NamedTuple):
    """Half-open pixel box in source image coordinates."""

    left: int = 0
    top: int = 0
    right: int = 0
    bottom: int = 0

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def center(self) -> tuple[float, float]:
        return (self.left + self.right) / 2, (self.top + self.bottom) / 2

    def contains(self, other: "Rect") -> bool:
        return (
            self.left <= other.left
            and self.top <= other.top
            and self.right >= other.right
            and self.bottom >= other.bottom
        )

    def intersect(self, other: "Rect") -> "Rect":
        """Overlap of two rects, or the empty rect when they do not overlap."""

        box = Rect(
            max(self.left, other.left),
            max(self.top, other.top),
            min(self.right, other.right),
            min(self.bottom, other.bottom),
        )
        return EMPTY_RECT if box.is_empty else box


EMPTY_RECT = Rect(0, 0, 0, 0)


@dataclass(frozen=True)
class TargetDimension:
    """Pixel resolution of one display."""

    width: int
    height: int

    @property
    def aspect(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class Display:
    """
    An active monitor as reported by the display enumerator. The engine never
    queries displays itself; callers turn each Display into a TargetDimension.
    """

    id: str
    name: str
    target_width: int
    target_height: int

    @property
    def target(self) -> TargetDimension:
        return TargetDimension(self.target_width, self.target_height)


def max_crop_size(image_w: int, image_h: int, target_w: int, target_h: int) -> tuple[int, int]:
    """
    Largest (width, height) with the target aspect ratio that fits inside the image.
    The limiting side spans the whole image; the other side is rounded to the nearest pixel.
    """

    if image_w * target_h > target_w * image_h:
        # image is wider than the target: height is the limiting side
        crop_h = image_h
        crop_w = min(image_w, max(1, round(image_h * target_w / target_h)))
    else:
        crop_w = image_w
        crop_h = min(image_h, max(1, round(image_w * target_h / target_w)))

    return crop_w, crop_h


def place_span(desired_start: float, length: int, limit: int, keep: tuple[int, int] = None) -> int:
    """
    Choose the start of a 1-D span of `length` inside [0, limit] as close as possible
    to desired_start. When `keep` (lo, hi) is given and fits inside the span, the span
    is translated so that it also covers [lo, hi].
    """

    low, high = 0, limit - length

    if keep is not None:
        keep_lo, keep_hi = keep
        if keep_hi - keep_lo <= length:
            low = max(low, keep_hi - length)
            high = min(high, keep_lo)

    start = int(round(desired_start))
    return max(low, min(high, start))


def rect_around(
    center_x: float,
    center_y: float,
    crop_w: int,
    crop_h: int,
    image_w: int,
    image_h: int,
) -> Rect:
    """Rect of the given size centered at (center_x, center_y), translated into image bounds."""

    left = place_span(center_x - crop_w / 2, crop_w, image_w)
    top = place_span(center_y - crop_h / 2, crop_h, image_h)
    return Rect(left, top, left + crop_w, top + crop_h)
