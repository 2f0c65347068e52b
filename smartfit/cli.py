"""
smartfit

Fit images to a display resolution on the command line, keeping faces and the most interesting
part of the picture when a crop can't be avoided.

This module defines the entry point to the smartfit CLI. The 'cli' group loads the fit configuration
and sets up logging; the subcommands are thin wrappers around SmartFitEngine and the report tool.
"""

from dataclasses import replace
from pathlib import Path

import click
from PIL import Image

from smartfit.config import FitConfig
from smartfit.config import FitMode
from smartfit.config import load_config
from smartfit.face_detector import FaceDetector
from smartfit.face_model import load_face_model
from smartfit.fit_engine import SmartFitEngine
from smartfit.geometry import TargetDimension
from smartfit.report import generate_report

from smartfit.cli_utils.console import configure_logging
from smartfit.cli_utils.console import confirm_success
from smartfit.cli_utils.console import describe
from smartfit.cli_utils.console import warn
from smartfit.cli_utils.decorators import catch_errors


def build_detector(face_model: bool) -> FaceDetector:
    """Load the face model once per invocation. A model that fails to load disables face features."""

    if not face_model:
        return FaceDetector()

    model = load_face_model()
    if model is None:
        warn("face model unavailable, continuing without face detection")
    return FaceDetector(model)


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Read fit preferences from this JSON file instead of ~/.config/smartfit/config.json",
)
@click.option(
    "--verbose",
    "verbosity",
    flag_value="verbose",
    help="Print the engine's decision trail.",
)
@click.option(
    "--quiet",
    "verbosity",
    flag_value="quiet",
    help="Only print errors.",
)
@click.version_option(package_name="smartfit")
@click.pass_context
@catch_errors
def cli(ctx: click.Context, config_file, verbosity):
    """
    smartfit

    Turn any image into a pixel-exact wallpaper for your display.

        fit a photo to a 4k monitor:

            $ smartfit fit photo.jpg --width 3840 --height 2160

        compare every fit mode over a folder of images:

            $ smartfit report ./tuning_images --width 3440 --height 1440
    """

    configure_logging(verbosity or "normal")
    ctx.obj = load_config(config_file)


@cli.command(name="fit")
@click.argument("image", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option("--width", "-w", type=click.IntRange(min=1), required=True, help="Target width in pixels.")
@click.option("--height", "-h", type=click.IntRange(min=1), required=True, help="Target height in pixels.")
@click.option(
    "--mode",
    type=click.Choice([mode.value for mode in FitMode]),
    default=None,
    help="Fit mode. 'normal' never upscales, 'aggressive' accepts larger aspect mismatches.",
)
@click.option("--face-crop/--no-face-crop", default=None, help="Anchor crops on the best detected face.")
@click.option("--face-boost/--no-face-boost", default=None, help="Widen the margin kept around faces.")
@click.option("--boost-strength", type=click.IntRange(min=0), default=None, help="Face boost strength.")
@click.option("--face-model/--no-face-model", default=True, show_default=True, help="Load the face detection model.")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Where to save the result. Defaults to <image>-<width>x<height><suffix> next to the source.",
)
@click.pass_obj
@catch_errors
def fit(config: FitConfig, image: Path, width, height, mode, face_crop, face_boost, boost_strength, face_model, output):
    """
    Fit IMAGE to exactly WIDTH x HEIGHT.
    """

    overrides = {
        "fit_mode": mode,
        "face_crop_enabled": face_crop,
        "face_boost_enabled": face_boost,
        "face_boost_strength": boost_strength,
    }
    config = replace(config, **{key: value for key, value in overrides.items() if value is not None})

    engine = SmartFitEngine(detector=build_detector(face_model))

    with Image.open(image) as opened:
        source = opened.convert("RGB")

    describe(f"fitting '{image.name}' ({source.width}x{source.height}) to {width}x{height}..")
    fitted, stats = engine.fit(source, TargetDimension(width, height), config)

    if output is None:
        output = image.parent / f"{image.stem}-{width}x{height}{image.suffix}"

    fitted.save(output, quality=95)
    confirm_success(f":floppy_disk-emoji: saved '{output.name}' to {output.parent} ({stats.summary()})")


@cli.command(name="report")
@click.argument("source_dir", type=click.Path(path_type=Path, exists=True, file_okay=False))
@click.option("--width", "-w", type=click.IntRange(min=1), default=3440, show_default=True)
@click.option("--height", "-h", type=click.IntRange(min=1), default=1440, show_default=True)
@click.option("--face-model/--no-face-model", default=True, show_default=True, help="Load the face detection model.")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, file_okay=False),
    default=Path("report_output"),
    show_default=True,
)
@catch_errors
def report(source_dir: Path, width, height, face_model, output: Path):
    """
    Render a side-by-side comparison of every fit mode for the images in SOURCE_DIR.
    """

    describe(f"building smart fit report for {width}x{height}..")
    page = generate_report(source_dir, TargetDimension(width, height), output, build_detector(face_model))
    confirm_success(f":white_check_mark-emoji: report generated at {page}")


def main():
    cli()


if __name__ == "__main__":
    main()
