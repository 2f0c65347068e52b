"""
conftest.py

Test configuration for smartfit tests.

Defines Pytest fixtures for supplying test data to tests across the entire
test suite. Fixtures used within only a single module are defined
directly in that module. Test images are generated on the fly so the
suite does not depend on binary test data.
"""

import io
import unittest.mock

import pytest
from PIL import Image
from PIL import ImageDraw

from smartfit.face_detector import FaceCandidate
from smartfit.geometry import Rect


def draw_test_image(width: int, height: int) -> Image.Image:
    """
    Deterministic RGB image with a horizontal gradient and a few solid shapes so that
    resampling and edge energy have something to work with.
    """

    gradient = Image.linear_gradient("L").rotate(90).resize((width, height))
    image = Image.merge("RGB", (gradient, gradient.transpose(Image.Transpose.FLIP_LEFT_RIGHT), gradient))

    draw = ImageDraw.Draw(image)
    draw.rectangle((width // 8, height // 8, width // 4, height // 4), fill=(255, 0, 0))
    draw.ellipse((width // 2, height // 2, width * 3 // 4, height * 3 // 4), fill=(0, 0, 255))
    return image


@pytest.fixture
def make_image():
    """Factory fixture: make_image(width, height) -> deterministic test image."""

    return draw_test_image


@pytest.fixture
def face_model():
    """
    Factory fixture returning a mocked face model whose detect() reports the given faces.
    Faces are given as (left, top, right, bottom, quality) tuples.
    """

    def factory(*faces):
        model = unittest.mock.MagicMock()
        model.detect.return_value = [
            FaceCandidate(rect=Rect(*face[:4]), quality=face[4], scale=max(face[2] - face[0], face[3] - face[1]))
            for face in faces
        ]
        return model

    return factory


@pytest.fixture
def write_truncated_jpeg(make_image):
    """Factory fixture: write_truncated_jpeg(path) saves a JPEG cut off halfway through its scan data."""

    def factory(path):
        buffer = io.BytesIO()
        make_image(800, 600).save(buffer, format="JPEG", quality=95)
        data = buffer.getvalue()
        path.write_bytes(data[: len(data) // 2])
        return path

    return factory
