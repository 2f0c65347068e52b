"""
Tests for fit_engine.py

Validate the decision table (identity, scale, crop, rejection), the exact output size guarantee,
determinism, and that every call leaves exactly one stats record behind.

*** Fixtures ***
- make_image (defined in conftest.py)
- face_model (defined in conftest.py)
"""

import unittest.mock
from types import SimpleNamespace

import pytest

from smartfit.config import FitConfig
from smartfit.config import FitMode
from smartfit.config import MODE_THRESHOLDS
from smartfit.face_detector import FaceDetector
from smartfit.geometry import Rect
from smartfit.geometry import TargetDimension
from smartfit.stats import FitPath
from smartfit.stats import FitStats
from smartfit.stats import StatsRecorder

# following entities are tested in this module:
from smartfit.fit_engine import SmartFitEngine
from smartfit.fit_engine import classify
from smartfit.fit_engine import InvalidImageError
from smartfit.fit_engine import IncompatibleAspectError
from smartfit.fit_engine import IncompatibleResolutionError

FULL_HD = TargetDimension(1920, 1080)
NORMAL = FitConfig(fit_mode=FitMode.NORMAL)
AGGRESSIVE = FitConfig(fit_mode=FitMode.AGGRESSIVE)


@pytest.mark.parametrize(
    "source, mode, expected",
    [
        ((1920, 1080), FitMode.NORMAL, FitPath.IDENTITY),
        ((1920, 1080), FitMode.AGGRESSIVE, FitPath.IDENTITY),
        ((3840, 2160), FitMode.NORMAL, FitPath.SCALE),
        ((3840, 2160), FitMode.AGGRESSIVE, FitPath.SCALE),
        ((3000, 2000), FitMode.NORMAL, FitPath.CROP),
        ((4096, 4096), FitMode.AGGRESSIVE, FitPath.CROP),
        ((4000, 1000), FitMode.AGGRESSIVE, FitPath.CROP),
        ((1919, 1080), FitMode.AGGRESSIVE, FitPath.SCALE),
    ],
)
def test_classify_paths(source, mode, expected):
    assert classify(*source, 1920, 1080, MODE_THRESHOLDS[mode]) is expected


@pytest.mark.parametrize(
    "source, mode, error",
    [
        ((1919, 1080), FitMode.NORMAL, IncompatibleResolutionError),
        ((1920, 1079), FitMode.NORMAL, IncompatibleResolutionError),
        ((8000, 1100), FitMode.NORMAL, IncompatibleAspectError),
        ((4000, 1000), FitMode.NORMAL, IncompatibleResolutionError),
        ((5000, 1000), FitMode.AGGRESSIVE, IncompatibleAspectError),
        ((2000, 4000), FitMode.NORMAL, IncompatibleAspectError),
    ],
)
def test_classify_rejections(source, mode, error):
    with pytest.raises(error):
        classify(*source, 1920, 1080, MODE_THRESHOLDS[mode])


def test_identity_returns_source_without_resampling(make_image):
    source = make_image(1920, 1080)
    engine = SmartFitEngine()

    with unittest.mock.patch("smartfit.fit_engine.resampler.resize") as mock_resize:
        fitted, stats = engine.fit(source, FULL_HD, NORMAL)

    mock_resize.assert_not_called()
    assert fitted is source
    assert stats.path is FitPath.IDENTITY
    assert stats.rect.is_empty


def test_scenario_a_scale_only(make_image):
    """3840x2160 to 1920x1080 is a pure downscale with no crop rect and no face."""

    source = make_image(3840, 2160)
    fitted, stats = SmartFitEngine().fit(source, FULL_HD, NORMAL)

    assert fitted.size == (1920, 1080)
    assert stats.path is FitPath.SCALE
    assert stats.found is False
    assert stats.rect.is_empty


def test_scenario_b_saliency_crop_without_face_model(make_image):
    source = make_image(4096, 4096)
    engine = SmartFitEngine()

    fitted, stats = engine.fit(source, FULL_HD, AGGRESSIVE)

    assert fitted.size == (1920, 1080)
    assert stats.path is FitPath.CROP
    assert stats.found is False
    assert Rect(0, 0, 4096, 4096).contains(stats.rect)
    assert (stats.rect.width, stats.rect.height) == (4096, 2304)


def test_scenario_c_face_anchored_crop(make_image, face_model):
    face = (1350, 200, 1650, 500)
    engine = SmartFitEngine(detector=FaceDetector(face_model((*face, 8.5))))

    fitted, stats = engine.fit(make_image(3000, 2000), FULL_HD, AGGRESSIVE)

    assert fitted.size == (1920, 1080)
    assert stats.found is True
    assert stats.quality == 8.5
    assert stats.scale == 300
    assert stats.face_rect == Rect(*face)
    assert stats.rect.contains(Rect(*face))


@pytest.mark.parametrize(
    "source_size, target",
    [
        ((3000, 2000), TargetDimension(1920, 1080)),
        ((4096, 4096), TargetDimension(2560, 1440)),
        ((2000, 3000), TargetDimension(1080, 1920)),
        ((1200, 1600), TargetDimension(1280, 1024)),
    ],
)
def test_crop_output_matches_target_exactly(make_image, source_size, target):
    fitted, stats = SmartFitEngine().fit(make_image(*source_size), target, AGGRESSIVE)

    assert fitted.size == (target.width, target.height)
    assert Rect(0, 0, *source_size).contains(stats.rect)
    assert stats.rect.width / stats.rect.height == pytest.approx(target.aspect, rel=1e-3)


def test_fit_is_deterministic(make_image, face_model):
    source = make_image(3000, 2000)
    config = FitConfig(fit_mode=FitMode.AGGRESSIVE, face_boost_enabled=True, face_crop_enabled=False)
    engine = SmartFitEngine(detector=FaceDetector(face_model((2000, 600, 2300, 900, 9.0))))

    first, first_stats = engine.fit(source, FULL_HD, config)
    second, second_stats = engine.fit(source, FULL_HD, config)

    assert first.tobytes() == second.tobytes()
    assert first_stats.rect == second_stats.rect


def test_source_is_not_modified(make_image):
    source = make_image(3000, 2000)
    before = source.tobytes()

    SmartFitEngine().fit(source, FULL_HD, AGGRESSIVE)

    assert source.tobytes() == before
    assert source.size == (3000, 2000)


@pytest.mark.parametrize("size", [(1919, 1080), (1920, 1079)])
def test_one_pixel_short_boundary(make_image, size):
    engine = SmartFitEngine()

    with pytest.raises(IncompatibleResolutionError):
        engine.fit(make_image(*size), FULL_HD, NORMAL)

    fitted, _ = engine.fit(make_image(*size), FULL_HD, AGGRESSIVE)
    assert fitted.size == (1920, 1080)


def test_rejection_overwrites_previous_stats(make_image):
    recorder = StatsRecorder()
    engine = SmartFitEngine(recorder=recorder)

    engine.fit(make_image(3000, 2000), FULL_HD, AGGRESSIVE)
    assert not recorder.last.rect.is_empty

    with pytest.raises(IncompatibleAspectError):
        engine.fit(make_image(5000, 1000), FULL_HD, AGGRESSIVE)

    assert recorder.last.path is FitPath.REJECTED
    assert recorder.last.found is False
    assert recorder.last.rect.is_empty
    assert engine.last_stats is recorder.last


def test_model_failure_overwrites_previous_stats(make_image, face_model):
    model = face_model()
    engine = SmartFitEngine(detector=FaceDetector(model))

    _, before = engine.fit(make_image(3840, 2160), FULL_HD, AGGRESSIVE)
    assert before.path is FitPath.SCALE

    model.detect.side_effect = RuntimeError("model crashed")
    with pytest.raises(RuntimeError):
        engine.fit(make_image(3000, 2000), FULL_HD, AGGRESSIVE)

    assert engine.last_stats is not before
    assert engine.last_stats.path is FitPath.REJECTED
    assert engine.last_stats.found is False
    assert engine.last_stats.rect.is_empty


@pytest.mark.parametrize(
    "source, target",
    [
        (SimpleNamespace(width=0, height=1080), FULL_HD),
        (SimpleNamespace(width=-5, height=10), FULL_HD),
        (SimpleNamespace(width=1920, height=1080), TargetDimension(0, 1080)),
    ],
)
def test_invalid_dimensions(source, target):
    engine = SmartFitEngine()

    with pytest.raises(InvalidImageError):
        engine.fit(source, target, AGGRESSIVE)

    assert engine.last_stats.path is FitPath.REJECTED


def test_face_detection_skipped_when_face_features_off(make_image, face_model):
    model = face_model((100, 100, 400, 400, 9.0))
    engine = SmartFitEngine(detector=FaceDetector(model))
    config = FitConfig(face_crop_enabled=False, face_boost_enabled=False)

    _, stats = engine.fit(make_image(3000, 2000), FULL_HD, config)

    model.detect.assert_not_called()
    assert stats.found is False


def test_low_confidence_face_falls_back_to_saliency(make_image, face_model):
    engine = SmartFitEngine(detector=FaceDetector(face_model((100, 100, 400, 400, 2.0))))

    _, stats = engine.fit(make_image(3000, 2000), FULL_HD, AGGRESSIVE)

    assert stats.found is False
    assert stats.path is FitPath.CROP


def test_smart_fit_disabled_uses_center_crop(make_image, face_model):
    model = face_model((100, 100, 400, 400, 9.0))
    engine = SmartFitEngine(detector=FaceDetector(model))
    config = FitConfig(smart_fit_enabled=False)

    fitted, stats = engine.fit(make_image(1500, 1000), TargetDimension(960, 540), config)

    model.detect.assert_not_called()
    assert fitted.size == (960, 540)
    assert stats.rect == Rect(0, 78, 1500, 922)


def test_stats_summary_mentions_face():
    stats = FitStats(found=True, quality=8.5, scale=300, rect=Rect(0, 0, 10, 10), path=FitPath.CROP)

    assert "Q:8.5" in stats.summary()
    assert "crop" in stats.summary()
