"""
Smart fit report

Offline diagnostic tool: runs every image in a folder through a fixed matrix of fit modes and face
features and renders an HTML page with one row per image and one column per mode, so tuning changes
can be compared side by side. It only uses the public fit engine API.

Output layout (out_dir):
    report.html
    <image>_original.<ext>
    <image>_<mode>.jpg   for every successful cell
"""

import html
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from smartfit.config import FitConfig
from smartfit.config import FitMode
from smartfit.face_detector import FaceDetector
from smartfit.fit_engine import SmartFitEngine
from smartfit.fit_engine import SmartFitError
from smartfit.geometry import TargetDimension

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


@dataclass(frozen=True)
class ReportMode:
    name: str
    config: FitConfig

    @property
    def slug(self) -> str:
        return self.name.replace(" ", "_").replace("(", "").replace(")", "")


REPORT_MODES = (
    ReportMode(
        "Standard (Quality)",
        FitConfig(fit_mode=FitMode.NORMAL, face_crop_enabled=False, face_boost_enabled=False),
    ),
    ReportMode(
        "Standard (Flexibility)",
        FitConfig(fit_mode=FitMode.AGGRESSIVE, face_crop_enabled=False, face_boost_enabled=False),
    ),
    ReportMode(
        "Face Crop (Flex)",
        FitConfig(fit_mode=FitMode.AGGRESSIVE, face_crop_enabled=True, face_boost_enabled=False),
    ),
    ReportMode(
        "Face Boost (S0) (Flex)",
        FitConfig(
            fit_mode=FitMode.AGGRESSIVE,
            face_crop_enabled=False,
            face_boost_enabled=True,
            face_boost_strength=0,
        ),
    ),
)

STYLE = """
body { font-family: sans-serif; background: #222; color: #eee; padding: 20px; }
.test-case { margin-bottom: 50px; border-bottom: 1px solid #444; padding-bottom: 20px; }
h2 { color: #f0a500; }
.grid { display: grid; grid-template-columns: repeat(5, 1fr); gap: 10px; }
.cell { text-align: center; }
.error { color: #ff6b6b; }
img { max-width: 100%; height: auto; border: 2px solid #555; }
.label { margin-top: 5px; font-size: 0.9em; color: #aaa; }
.meta { font-size: 0.8em; color: #777; }
"""


def list_images(folder: Path) -> list[Path]:
    """Image files directly inside folder, sorted by name so reports are stable across runs."""

    return sorted(
        path for path in Path(folder).iterdir()
        if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES
    )


def cell(image_name: str, label: str, meta: str) -> str:
    return (
        f'<div class="cell"><img src="{html.escape(image_name)}" />'
        f'<div class="label">{html.escape(label)}</div>'
        f'<div class="meta">{meta}</div></div>'
    )


def error_cell(label: str, error: Exception) -> str:
    return (
        f'<div class="cell error">{html.escape(label)}<br>'
        f"Error: {html.escape(str(error))}</div>"
    )


def unreadable_case(source_path: Path, error: Exception) -> str:
    return (
        f'<div class="test-case"><h2>{html.escape(source_path.stem)}</h2>'
        f'<div class="grid">{error_cell("Original", error)}</div></div>'
    )


def render_case(source_path: Path, target: TargetDimension, out_dir: Path, engine: SmartFitEngine) -> str:
    """Fit one image under every report mode and return its HTML block."""

    with Image.open(source_path) as opened:
        source = opened.convert("RGB")

    original = f"{source_path.stem}_original{source_path.suffix.lower()}"
    shutil.copy2(source_path, out_dir / original)

    cells = [cell(original, "Original", f"{source.width}x{source.height}")]

    for mode in REPORT_MODES:
        try:
            fitted, stats = engine.fit(source, target, mode.config)
        except SmartFitError as error:
            logger.info("%s [%s]: %s", source_path.name, mode.name, error)
            cells.append(error_cell(mode.name, error))
            continue

        name = f"{source_path.stem}_{mode.slug}.jpg"
        fitted.save(out_dir / name, quality=95)

        face_info = "No face detected"
        if stats.found:
            face_info = f"Face: (Q:{stats.quality:.1f}, S:{stats.scale})<br>Rect: {tuple(stats.rect)}"

        meta = (
            f"{fitted.width}x{fitted.height}<br>{stats.path.value}, "
            f"{stats.duration * 1000:.0f}ms<br>{face_info}"
        )
        cells.append(cell(name, mode.name, meta))

    return (
        f'<div class="test-case"><h2>{html.escape(source_path.stem)}</h2>'
        f'<div class="grid">{"".join(cells)}</div></div>'
    )


def generate_report(
    source_dir: Path,
    target: TargetDimension,
    out_dir: Path,
    detector: FaceDetector = None,
) -> Path:
    """
    Build the comparison report for every image in source_dir and return the path of report.html.
    Raise FileNotFoundError if source_dir holds no images.
    """

    images = list_images(source_dir)
    if not images:
        raise FileNotFoundError(f"No images found in {source_dir}")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    # one engine for the whole run: the report is sequential, so sharing the recorder is fine
    engine = SmartFitEngine(detector=detector)

    blocks = []
    for path in images:
        logger.info("processing %s", path.name)
        try:
            blocks.append(render_case(path, target, out_dir, engine))
        except OSError as error:
            # unreadable or truncated file, reported in place of the fits
            logger.warning("could not read %s: %s", path.name, error)
            blocks.append(unreadable_case(path, error))

    page = (
        f"<html><head><style>{STYLE}</style></head><body>"
        f"<h1>Smart Fit Report ({target.width}x{target.height})</h1>"
        f'{"".join(blocks)}</body></html>'
    )

    report = out_dir / "report.html"
    report.write_text(page)
    return report
