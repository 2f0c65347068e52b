"""
Face Detector

Optional capability wrapped around an injected, pre-trained face detection model. The model is any
object with a detect(image) method returning an iterable of FaceCandidate; smartfit ships an OpenCV
Haar cascade adapter in smartfit.face_model but the detector does not care where the model comes from.

When no model is injected the detector is a no-op that returns an empty list, which is how face
features are disabled. Finding no face is a normal outcome and never an error.

Filtering happens here rather than in the model: raw detections below the confidence threshold and
boxes smaller than min_face_size_pct percent of the image area are dropped, which removes most
false positives coming from small background faces and textures.
"""

import logging
from dataclasses import dataclass
from typing import Iterable
from typing import Protocol

from PIL import Image

from smartfit.geometry import Rect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaceCandidate:
    rect: Rect
    quality: float
    scale: int


class FaceModel(Protocol):
    def detect(self, image: Image.Image) -> Iterable[FaceCandidate]:
        ...


def by_quality(candidate: FaceCandidate):
    """Sort key: highest quality first, larger box first on ties."""

    return (-candidate.quality, -candidate.rect.area)


class FaceDetector:
    def __init__(self, model: FaceModel = None):
        self.model = model

    @property
    def enabled(self) -> bool:
        return self.model is not None

    def detect(
        self,
        image: Image.Image,
        min_confidence: float = 5.0,
        min_face_size_pct: float = 1.0,
    ) -> list[FaceCandidate]:
        """Filtered candidates sorted by descending quality."""

        if self.model is None:
            return []

        bounds = Rect(0, 0, image.width, image.height)
        min_area = bounds.area * min_face_size_pct / 100

        candidates = []
        for raw in self.model.detect(image):
            rect = Rect(*raw.rect).intersect(bounds)

            if rect.is_empty:
                continue
            if raw.quality < min_confidence:
                logger.debug("dropping face %s: quality %.2f", tuple(rect), raw.quality)
                continue
            if rect.area < min_area:
                logger.debug("dropping face %s: area below %.1f%%", tuple(rect), min_face_size_pct)
                continue

            candidates.append(FaceCandidate(rect=rect, quality=float(raw.quality), scale=int(raw.scale)))

        candidates.sort(key=by_quality)
        logger.debug("face detector kept %d candidate(s)", len(candidates))
        return candidates
