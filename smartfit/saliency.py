"""
Saliency Crop Analyzer

Finds the target-aspect crop that keeps the most visually interesting part of an image when there is
no face to anchor on. Interest is approximated by edge energy: the Sobel gradient magnitude of a
small grayscale thumbnail.

Only maximal crops are considered (the largest rectangle of the target aspect that fits the source),
so the analyzer pans instead of zooming. Positions are sampled on a grid whose step grows with the
free span, which bounds the work to max_positions per axis regardless of resolution. Scores come from
a summed-area table so each candidate costs four lookups.

Everything here is deterministic: no randomness, a fixed BOX down-sample, and ties resolved by
distance to the image center and then by scan order.
"""

import logging
import math
from typing import Iterable

import numpy as np
from PIL import Image

from smartfit.geometry import Rect
from smartfit.geometry import max_crop_size

logger = logging.getLogger(__name__)

BOOST_ENERGY = 1.0


def sobel_energy(gray: np.ndarray) -> np.ndarray:
    """Gradient magnitude of a 2-D float array, edges replicated at the border."""

    p = np.pad(gray, ((1, 1), (1, 1)), mode="edge")

    gx = (p[0:-2, 2:] + 2 * p[1:-1, 2:] + p[2:, 2:]) - (
        p[0:-2, 0:-2] + 2 * p[1:-1, 0:-2] + p[2:, 0:-2]
    )
    gy = (p[2:, 0:-2] + 2 * p[2:, 1:-1] + p[2:, 2:]) - (
        p[0:-2, 0:-2] + 2 * p[0:-2, 1:-1] + p[0:-2, 2:]
    )
    return np.hypot(gx, gy)


def grid_positions(span: int, max_positions: int) -> list[int]:
    """Offsets 0..span sampled with a step that keeps the count near max_positions."""

    if span <= 0:
        return [0]

    step = max(1, math.ceil(span / max_positions))
    positions = list(range(0, span, step))
    positions.append(span)
    return positions


class SaliencyCropAnalyzer:
    def __init__(self, thumb_size: int = 128, max_positions: int = 32):
        self.thumb_size = thumb_size
        self.max_positions = max_positions

    def energy_map(self, image: Image.Image, boost_regions: Iterable[Rect] = ()) -> np.ndarray:
        """
        Normalised [0, 1] edge energy of a down-sampled copy of image. Boost regions (in source
        coordinates) get BOOST_ENERGY added on top so a face hint outweighs busy backgrounds.
        """

        scale = min(1.0, self.thumb_size / max(image.width, image.height))
        thumb_w = max(1, round(image.width * scale))
        thumb_h = max(1, round(image.height * scale))

        if image.mode not in ("L", "RGB"):
            image = image.convert("RGB")

        thumb = image.resize((thumb_w, thumb_h), resample=Image.Resampling.BOX).convert("L")
        energy = sobel_energy(np.asarray(thumb, dtype=np.float64))

        peak = float(energy.max()) if energy.size else 0.0
        if peak > 0:
            energy /= peak

        sx = thumb_w / image.width
        sy = thumb_h / image.height
        for region in boost_regions:
            x0 = int(math.floor(region.left * sx))
            y0 = int(math.floor(region.top * sy))
            x1 = max(x0 + 1, int(math.ceil(region.right * sx)))
            y1 = max(y0 + 1, int(math.ceil(region.bottom * sy)))
            energy[y0:y1, x0:x1] += BOOST_ENERGY

        return energy

    def find_best_crop(
        self,
        image: Image.Image,
        target_w: int,
        target_h: int,
        boost_regions: Iterable[Rect] = (),
    ) -> Rect:
        """Return the maximal target-aspect rect with the highest summed edge energy."""

        crop_w, crop_h = max_crop_size(image.width, image.height, target_w, target_h)
        energy = self.energy_map(image, boost_regions)

        thumb_h, thumb_w = energy.shape
        sx = thumb_w / image.width
        sy = thumb_h / image.height

        # summed-area table with a zero row/column so window sums need no bounds checks
        table = np.zeros((thumb_h + 1, thumb_w + 1), dtype=np.float64)
        table[1:, 1:] = energy.cumsum(axis=0).cumsum(axis=1)

        win_w = min(thumb_w, max(1, round(crop_w * sx)))
        win_h = min(thumb_h, max(1, round(crop_h * sy)))

        center_x = (image.width - crop_w) / 2
        center_y = (image.height - crop_h) / 2

        best_key = None
        best = None
        order = 0
        for y in grid_positions(image.height - crop_h, self.max_positions):
            ty = min(thumb_h - win_h, round(y * sy))
            for x in grid_positions(image.width - crop_w, self.max_positions):
                tx = min(thumb_w - win_w, round(x * sx))
                score = (
                    table[ty + win_h, tx + win_w]
                    - table[ty, tx + win_w]
                    - table[ty + win_h, tx]
                    + table[ty, tx]
                )
                key = (-round(float(score), 9), abs(x - center_x) + abs(y - center_y), order)
                if best_key is None or key < best_key:
                    best_key = key
                    best = (x, y)
                order += 1

        x, y = best
        rect = Rect(x, y, x + crop_w, y + crop_h)
        logger.debug("saliency crop %s (score %.3f)", tuple(rect), -best_key[0])
        return rect
