"""
Tests for pipeline.py

Validate that a candidate is fitted per display, that failing displays are skipped rather than
fatal, and that nothing is written for a candidate that fits nowhere.

*** Fixtures ***
- make_image (defined in conftest.py)
- write_truncated_jpeg (defined in conftest.py)
- tmp_path (defined by Pytest)
"""

import pytest

from smartfit.config import FitConfig
from smartfit.config import FitMode
from smartfit.fit_engine import SmartFitEngine
from smartfit.geometry import Display

# following entities are tested in this module:
from smartfit.pipeline import fit_for_displays
from smartfit.pipeline import process_candidate
from smartfit.pipeline import CandidateLoadError

NORMAL = FitConfig(fit_mode=FitMode.NORMAL)

DISPLAYS = [
    Display(id="main", name="Main Monitor", target_width=1920, target_height=1080),
    Display(id="side", name="Portrait Monitor", target_width=1080, target_height=1920),
]


def test_fit_for_displays_skips_failures(make_image):
    fitted = fit_for_displays(make_image(3840, 2160), DISPLAYS, NORMAL, SmartFitEngine())

    assert list(fitted) == ["main"]
    assert fitted["main"].size == (1920, 1080)


def test_process_candidate_writes_successful_fits(make_image, tmp_path):
    source = tmp_path / "candidate.png"
    make_image(3840, 2160).save(source)

    saved = process_candidate(source, DISPLAYS, NORMAL, SmartFitEngine(), tmp_path / "fitted")

    assert saved == {"main": tmp_path / "fitted" / "main" / "candidate.png"}
    assert saved["main"].exists()
    assert not (tmp_path / "fitted" / "side").exists()


def test_unfittable_candidate_writes_nothing(make_image, tmp_path):
    source = tmp_path / "small.png"
    make_image(640, 480).save(source)

    saved = process_candidate(source, DISPLAYS, NORMAL, SmartFitEngine(), tmp_path / "fitted")

    assert saved == {}
    assert not (tmp_path / "fitted").exists()


@pytest.mark.parametrize("name, content", [("notes.png", b"not an image"), ("missing.png", None)])
def test_candidate_load_errors(tmp_path, name, content):
    path = tmp_path / name
    if content is not None:
        path.write_bytes(content)

    with pytest.raises(CandidateLoadError):
        process_candidate(path, DISPLAYS, NORMAL, SmartFitEngine(), tmp_path / "fitted")


def test_truncated_candidate_is_a_load_error(write_truncated_jpeg, tmp_path):
    path = write_truncated_jpeg(tmp_path / "cut.jpg")

    with pytest.raises(CandidateLoadError):
        process_candidate(path, DISPLAYS, NORMAL, SmartFitEngine(), tmp_path / "fitted")

    assert not (tmp_path / "fitted").exists()
