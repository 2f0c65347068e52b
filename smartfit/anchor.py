"""
Crop Anchor Resolver

Turns face detection output and the saliency fallback into the one crop rectangle that will be
resampled into the wallpaper.

With face crop enabled and a usable face, the rectangle is the largest target-aspect crop centered
on the best face, nudged upward by vertical_shift_bias to leave headroom, then translated so the
face (plus a safety margin) stays inside it. The rectangle is only ever translated, never resized,
and it always ends up inside the source bounds.

Face boost widens that safety margin:

    effective_margin = base_margin * (1 + face_boost_strength * 0.25)

When face boost is enabled without face crop, the face is instead handed to the saliency analyzer
as a boost region so it weighs heavily in the energy search without hard-anchoring the crop.
"""

import logging
import math

from PIL import Image

from smartfit.config import FitConfig
from smartfit.face_detector import FaceCandidate
from smartfit.face_detector import by_quality
from smartfit.geometry import Rect
from smartfit.geometry import TargetDimension
from smartfit.geometry import max_crop_size
from smartfit.geometry import place_span
from smartfit.saliency import SaliencyCropAnalyzer

logger = logging.getLogger(__name__)

BOOST_MARGIN_STEP = 0.25


def best_face(candidates: list[FaceCandidate]) -> FaceCandidate:
    """Highest quality candidate, larger box wins ties. None for an empty list."""

    if not candidates:
        return None
    return min(candidates, key=by_quality)


class CropAnchorResolver:
    def __init__(self, analyzer: SaliencyCropAnalyzer = None, base_margin: float = 0.25):
        self.analyzer = analyzer or SaliencyCropAnalyzer()
        self.base_margin = base_margin

    def effective_margin(self, config: FitConfig) -> float:
        if config.face_boost_enabled:
            return self.base_margin * (1 + config.face_boost_strength * BOOST_MARGIN_STEP)
        return self.base_margin

    def resolve(
        self,
        image: Image.Image,
        target: TargetDimension,
        face_candidates: list[FaceCandidate],
        config: FitConfig,
    ) -> Rect:
        face = best_face(face_candidates)

        if config.face_crop_enabled and face is not None:
            rect = self.around_face(image.width, image.height, target, face.rect, config)
            logger.debug("face anchored crop %s around %s", tuple(rect), tuple(face.rect))
            return rect

        boost = ()
        if config.face_boost_enabled and face is not None:
            logger.debug("face boost hint %s", tuple(face.rect))
            boost = (face.rect,)

        return self.analyzer.find_best_crop(image, target.width, target.height, boost)

    def around_face(
        self,
        image_w: int,
        image_h: int,
        target: TargetDimension,
        face: Rect,
        config: FitConfig,
    ) -> Rect:
        crop_w, crop_h = max_crop_size(image_w, image_h, target.width, target.height)

        center_x, center_y = face.center
        # positive bias moves the crop up, which places the face lower in the frame
        center_y -= config.vertical_shift_bias * crop_h

        margin = self.effective_margin(config)
        pad_x = face.width * margin
        pad_y = face.height * margin
        padded = Rect(
            math.floor(face.left - pad_x),
            math.floor(face.top - pad_y),
            math.ceil(face.right + pad_x),
            math.ceil(face.bottom + pad_y),
        ).intersect(Rect(0, 0, image_w, image_h))
        if padded.is_empty:
            padded = face

        left = place_span(
            center_x - crop_w / 2,
            crop_w,
            image_w,
            keep=keep_span(crop_w, (padded.left, padded.right), (face.left, face.right)),
        )
        top = place_span(
            center_y - crop_h / 2,
            crop_h,
            image_h,
            keep=keep_span(crop_h, (padded.top, padded.bottom), (face.top, face.bottom)),
        )
        return Rect(left, top, left + crop_w, top + crop_h)


def keep_span(length: int, padded: tuple[int, int], bare: tuple[int, int]):
    """The widest of the padded or bare face spans that fits in length, else None."""

    for lo, hi in (padded, bare):
        if hi - lo <= length:
            return lo, hi
    return None
