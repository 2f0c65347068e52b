"""
Fit Decision Engine

Entry point of smartfit. SmartFitEngine.fit() classifies a (source, target) pair and sends it down
one of four paths:

    identity   source already has the target size, returned unchanged
    scale      aspect ratios match within tolerance, uniform resize
    crop       aspect ratios differ but within the crop limit, anchor a crop and resample it
    rejected   source too small (NORMAL mode) or aspect mismatch beyond the crop limit

Thresholds come from the FitMode table in smartfit.config so both modes run through the same branches.
Every call writes exactly one FitStats record, rejected calls included.

The engine holds no global state. A face model may be shared between engines (read-only), but each
concurrently running pipeline needs its own engine, or at least its own StatsRecorder.
"""

import logging
import time

from PIL import Image

from smartfit import resampler
from smartfit.anchor import CropAnchorResolver
from smartfit.anchor import best_face
from smartfit.config import FitConfig
from smartfit.config import ModeThresholds
from smartfit.face_detector import FaceDetector
from smartfit.geometry import EMPTY_RECT
from smartfit.geometry import TargetDimension
from smartfit.stats import FitPath
from smartfit.stats import FitStats
from smartfit.stats import StatsRecorder

logger = logging.getLogger(__name__)


class SmartFitError(Exception):
    """
    Base class for classified fit failures. Callers are expected to skip the candidate image
    and move on, never to abort.
    """

    pass


class InvalidImageError(SmartFitError):
    """Raised when the source or target has a zero or negative dimension."""

    pass


class IncompatibleResolutionError(SmartFitError):
    """Raised in NORMAL mode when the source is smaller than the target in either dimension."""

    pass


class IncompatibleAspectError(SmartFitError):
    """Raised when the aspect mismatch exceeds the crop limit of the active mode."""

    pass


def classify(
    source_w: int,
    source_h: int,
    target_w: int,
    target_h: int,
    thresholds: ModeThresholds,
) -> FitPath:
    """
    Pure decision table for a source/target pair. Returns the path to take or raises the
    classified error. Dimensions must already be validated as positive.
    """

    if (source_w < target_w or source_h < target_h) and not thresholds.allow_upscale:
        raise IncompatibleResolutionError(
            f"Source {source_w}x{source_h} is smaller than target {target_w}x{target_h}."
        )

    aspect_diff = abs(source_w / source_h - target_w / target_h)

    if aspect_diff <= thresholds.aspect_tolerance:
        if source_w == target_w and source_h == target_h:
            return FitPath.IDENTITY
        return FitPath.SCALE

    if aspect_diff <= thresholds.crop_limit:
        return FitPath.CROP

    raise IncompatibleAspectError(
        f"Aspect difference {aspect_diff:.3f} between {source_w}x{source_h} and "
        f"{target_w}x{target_h} exceeds the limit of {thresholds.crop_limit:.3f}."
    )


class SmartFitEngine:
    def __init__(
        self,
        detector: FaceDetector = None,
        recorder: StatsRecorder = None,
        resolver: CropAnchorResolver = None,
        resample=resampler.DEFAULT_RESAMPLE,
    ):
        self.detector = detector or FaceDetector()
        self.recorder = recorder or StatsRecorder()
        self.resolver = resolver or CropAnchorResolver()
        self.resample = resample

    @property
    def last_stats(self) -> FitStats:
        return self.recorder.last

    def fit(
        self,
        source: Image.Image,
        target: TargetDimension,
        config: FitConfig,
    ) -> tuple[Image.Image, FitStats]:
        """
        Fit source to exactly target.width x target.height. Returns the fitted image and the stats
        record for this call, or raises a SmartFitError subclass. Face model errors propagate
        unchanged after a REJECTED record is written. The source is never modified.
        """

        started = time.perf_counter()

        try:
            return self._dispatch(source, target, config, started)

        except SmartFitError as error:
            logger.debug("fit rejected: %s", error)
            self._reject(started)
            raise

        except Exception:
            # model or resampler failure, still one stats record per call
            logger.debug("fit failed unexpectedly", exc_info=True)
            self._reject(started)
            raise

    def _dispatch(self, source, target, config, started):
        self._validate(source, target)
        path = classify(source.width, source.height, target.width, target.height, config.thresholds)

        if path is FitPath.IDENTITY:
            logger.debug("perfect fit, returning source unchanged")
            return source, self._record(started, path)

        if path is FitPath.SCALE:
            logger.debug("aspect ratio matches, scaling only")
            fitted = resampler.resize(source, None, target.width, target.height, self.resample)
            return fitted, self._record(started, path)

        return self._crop(source, target, config, started)

    def _crop(self, source, target, config, started):
        if not config.smart_fit_enabled:
            rect = resampler.center_crop_rect(source.width, source.height, target.width, target.height)
            logger.debug("smart fit disabled, center crop %s", tuple(rect))
            fitted = resampler.resize(source, rect, target.width, target.height, self.resample)
            return fitted, self._record(started, FitPath.CROP, rect=rect)

        faces = []
        if config.face_crop_enabled or config.face_boost_enabled:
            if self.detector.enabled:
                faces = self.detector.detect(
                    source,
                    min_confidence=config.min_confidence,
                    min_face_size_pct=config.min_face_size_pct,
                )
            else:
                logger.debug("face features enabled but no face model loaded")

        rect = self.resolver.resolve(source, target, faces, config)
        fitted = resampler.resize(source, rect, target.width, target.height, self.resample)

        face = best_face(faces)
        if face is None:
            return fitted, self._record(started, FitPath.CROP, rect=rect)

        return fitted, self._record(
            started,
            FitPath.CROP,
            rect=rect,
            found=True,
            quality=face.quality,
            scale=face.scale,
            face_rect=face.rect,
        )

    def _reject(self, started):
        self.recorder.record(FitStats(path=FitPath.REJECTED, duration=time.perf_counter() - started))

    def _record(self, started, path, rect=EMPTY_RECT, **face) -> FitStats:
        stats = FitStats(path=path, rect=rect, duration=time.perf_counter() - started, **face)
        logger.debug("fit stats: %s", stats.summary())
        return self.recorder.record(stats)

    @staticmethod
    def _validate(source: Image.Image, target: TargetDimension):
        if source.width <= 0 or source.height <= 0:
            raise InvalidImageError(f"Source image has invalid size {source.width}x{source.height}.")
        if target.width <= 0 or target.height <= 0:
            raise InvalidImageError(f"Target has invalid size {target.width}x{target.height}.")
