"""
Resampler

Pixel-accurate subimage extraction and scale-to-target resizing, the only place in smartfit where
pixels are actually produced. Both operations are pure: the source image is never modified and
identical inputs always produce byte-identical output.
"""

from PIL import Image

from smartfit.geometry import Rect
from smartfit.geometry import max_crop_size
from smartfit.geometry import rect_around

DEFAULT_RESAMPLE = Image.Resampling.LANCZOS


def resize(
    image: Image.Image,
    rect: Rect = None,
    target_w: int = 0,
    target_h: int = 0,
    resample=DEFAULT_RESAMPLE,
) -> Image.Image:
    """
    Resize image (or the rect sub-region of it) to exactly target_w x target_h.

    The sub-region is extracted with Image.crop, which copies pixels without interpolation, and
    only then handed to the resampling filter. Pillow's resize always returns a new image, so the
    caller's buffer is untouched even when the sizes already match.
    """

    region = image
    if rect is not None:
        region = image.crop(tuple(rect))

    return region.resize((target_w, target_h), resample=resample)


def center_crop_rect(image_w: int, image_h: int, target_w: int, target_h: int) -> Rect:
    """Largest target-aspect rect centered in the image. Used when smart fit is switched off."""

    crop_w, crop_h = max_crop_size(image_w, image_h, target_w, target_h)
    return rect_around(image_w / 2, image_h / 2, crop_w, crop_h, image_w, image_h)
