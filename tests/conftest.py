import base64
import io

import numpy as np
import pytest
from PIL import Image

from photoedit.models.image_model import EncodedImage, PixelGrid
from photoedit.services.image_service import ImageService
from photoedit.services.process_service import ProcessService


def make_grid(rgb, alpha=255) -> PixelGrid:
    """Build a grid from an (H, W, 3) array-like of RGB values."""
    rgb = np.asarray(rgb, dtype=np.uint8)
    h, w = rgb.shape[:2]
    data = np.empty((h, w, 4), dtype=np.uint8)
    data[..., :3] = rgb
    data[..., 3] = alpha
    return PixelGrid.from_array(data)


def solid_grid(width, height, color) -> PixelGrid:
    rgb = np.zeros((height, width, 3), dtype=np.uint8)
    rgb[:, :] = color
    return make_grid(rgb)


def png_image(grid: PixelGrid) -> EncodedImage:
    buffer = io.BytesIO()
    Image.fromarray(grid.data).save(buffer, format="PNG")
    return EncodedImage(
        data_base64=base64.b64encode(buffer.getvalue()).decode("ascii"),
        mime_type="image/png",
        width=grid.width,
        height=grid.height,
    )


@pytest.fixture
def image_service() -> ImageService:
    return ImageService()


@pytest.fixture
def process_service() -> ProcessService:
    return ProcessService()


@pytest.fixture
def random_grid() -> PixelGrid:
    rng = np.random.default_rng(1234)
    data = rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8)
    return PixelGrid.from_array(data)


@pytest.fixture(autouse=True)
def _no_ambient_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("PHOTOEDIT_SETTINGS", raising=False)
