"""
Download pipeline

The wallpaper download pipeline calls the fit engine once per downloaded candidate and per active
display before the final file is written. A failed fit only means "skip this candidate for this
display"; it never stops the rotation loop.

Fetching the candidate and enumerating displays happen elsewhere. This module starts from an image
file already on disk and a list of Display values.
"""

import logging
from pathlib import Path

from PIL import Image
from PIL import UnidentifiedImageError

from smartfit.config import FitConfig
from smartfit.fit_engine import SmartFitEngine
from smartfit.fit_engine import SmartFitError
from smartfit.geometry import Display

logger = logging.getLogger(__name__)

ENCODING_QUALITY = 95


class CandidateLoadError(Exception):
    """Raised when a downloaded candidate can't be opened as an image."""

    pass


def fit_for_displays(
    source: Image.Image,
    displays: list[Display],
    config: FitConfig,
    engine: SmartFitEngine,
) -> dict[str, Image.Image]:
    """
    Fit source to every display. Returns {display.id: fitted image} for the displays that
    succeeded; failures are logged and left out.
    """

    fitted = {}
    for display in displays:
        try:
            image, stats = engine.fit(source, display.target, config)
        except SmartFitError as error:
            logger.info("skipping display %s (%s): %s", display.id, display.name, error)
            continue

        logger.debug("fitted for display %s: %s", display.id, stats.summary())
        fitted[display.id] = image

    return fitted


def process_candidate(
    path: Path,
    displays: list[Display],
    config: FitConfig,
    engine: SmartFitEngine,
    dest_dir: Path,
) -> dict[str, Path]:
    """
    Open the candidate at path, fit it for every display and save each result as
    dest_dir/<display id>/<file name>. Returns {display.id: saved path}. Nothing is written
    for displays whose fit failed, so a candidate that fits nowhere leaves the disk untouched.
    """

    path = Path(path)

    try:
        with Image.open(path) as image:
            image.load()
            source = image.convert("RGB") if image.mode not in ("RGB", "L") else image.copy()

    except UnidentifiedImageError:
        raise CandidateLoadError(f"Candidate {path} does not appear to be an image.")

    except FileNotFoundError:
        raise CandidateLoadError(f"Candidate {path} could not be found.")

    except OSError as error:
        raise CandidateLoadError(f"Candidate {path} could not be decoded: {error}")

    saved = {}
    for display_id, fitted in fit_for_displays(source, displays, config, engine).items():
        out = Path(dest_dir) / display_id / path.name
        out.parent.mkdir(parents=True, exist_ok=True)
        fitted.save(out, quality=ENCODING_QUALITY)
        saved[display_id] = out

    return saved
