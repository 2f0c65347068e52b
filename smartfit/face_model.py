"""
Face model loader

Loads OpenCV's bundled frontal face Haar cascade once at startup and adapts it to the FaceModel
contract expected by smartfit.face_detector.FaceDetector.

A cascade that cannot be loaded is not an error for the fit engine: load_face_model logs a warning
and returns None, and the engine carries on with face features disabled. The loaded classifier is
only ever read after construction.
"""

import logging
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

from smartfit.face_detector import FaceCandidate
from smartfit.geometry import Rect

logger = logging.getLogger(__name__)

DEFAULT_CASCADE = Path(cv2.data.haarcascades) / "haarcascade_frontalface_default.xml"


class HaarCascadeModel:
    """
    detectMultiScale3 with outputRejectLevels reports, for each face, the weight of the last cascade
    stage it passed. That weight is used as the quality score; the face side length is the scale.
    """

    def __init__(
        self,
        classifier: cv2.CascadeClassifier,
        scale_factor: float = 1.1,
        min_neighbors: int = 5,
        min_size_ratio: float = 0.05,
    ):
        self.classifier = classifier
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size_ratio = min_size_ratio

    def detect(self, image: Image.Image) -> list[FaceCandidate]:
        gray = np.asarray(image.convert("L"))
        min_side = max(1, int(min(image.width, image.height) * self.min_size_ratio))

        boxes, _, weights = self.classifier.detectMultiScale3(
            gray,
            scaleFactor=self.scale_factor,
            minNeighbors=self.min_neighbors,
            minSize=(min_side, min_side),
            outputRejectLevels=True,
        )

        faces = []
        for (x, y, w, h), weight in zip(boxes, np.ravel(weights)):
            faces.append(
                FaceCandidate(
                    rect=Rect(int(x), int(y), int(x + w), int(y + h)),
                    quality=float(weight),
                    scale=int(max(w, h)),
                )
            )
        return faces


def load_face_model(cascade_path=None) -> HaarCascadeModel:
    """Return a HaarCascadeModel, or None if the cascade file can't be loaded."""

    path = Path(cascade_path) if cascade_path else DEFAULT_CASCADE

    try:
        classifier = cv2.CascadeClassifier(str(path))
    except cv2.error as error:
        logger.warning("Failed to load face model %s: %s. Face features disabled.", path, error)
        return None

    if classifier.empty():
        logger.warning("Face model %s could not be loaded. Face features disabled.", path)
        return None

    logger.debug("face model loaded from %s", path)
    return HaarCascadeModel(classifier)
