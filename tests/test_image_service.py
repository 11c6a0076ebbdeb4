import base64
import io
import struct
import zlib

import numpy as np
import pytest
from PIL import Image

from photoedit.errors import DecodeError
from photoedit.models.image_model import EncodedImage, ExportOptions

from conftest import make_grid, png_image


def png_chunk(tag, body):
    return struct.pack(">I", len(body)) + tag + body + struct.pack(">I", zlib.crc32(tag + body) & 0xFFFFFFFF)


def oversized_png(width=20000, height=20000):
    """Только заголовок PNG огромного размера: пиксели не нужны, чтобы сработала защита Pillow."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + png_chunk(b"IHDR", ihdr)
        + png_chunk(b"IDAT", zlib.compress(b"\x00"))
        + png_chunk(b"IEND", b"")
    )


@pytest.fixture
def noisy_grid():
    rng = np.random.default_rng(7)
    return make_grid(rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8))


class TestDecode:
    def test_decode_png(self, image_service, random_grid):
        grid = image_service.decode(png_image(random_grid))
        assert grid.size == (7, 5)
        np.testing.assert_array_equal(grid.data, random_grid.data)

    def test_decode_data_url(self, image_service, random_grid):
        encoded = png_image(random_grid)
        grid = image_service.decode(encoded.data_url)
        np.testing.assert_array_equal(grid.data, random_grid.data)

    def test_decode_rgb_jpeg_gets_opaque_alpha(self, image_service):
        buffer = io.BytesIO()
        Image.new("RGB", (4, 3), (10, 20, 30)).save(buffer, format="JPEG")
        grid = image_service.decode(base64.b64encode(buffer.getvalue()).decode("ascii"))
        assert grid.size == (4, 3)
        assert (grid.data[..., 3] == 255).all()

    def test_invalid_base64(self, image_service):
        with pytest.raises(DecodeError):
            image_service.decode("not base64 at all!!")

    def test_not_an_image(self, image_service):
        payload = base64.b64encode(b"plain text, definitely not a picture").decode("ascii")
        with pytest.raises(DecodeError):
            image_service.decode(payload)

    def test_truncated_image(self, image_service, noisy_grid):
        raw = png_image(noisy_grid).raw_bytes()
        truncated = base64.b64encode(raw[: len(raw) // 2]).decode("ascii")
        with pytest.raises(DecodeError):
            image_service.decode(truncated)

    def test_oversized_image_is_decode_error(self, image_service):
        payload = base64.b64encode(oversized_png()).decode("ascii")
        with pytest.raises(DecodeError) as excinfo:
            image_service.decode(payload)
        assert isinstance(excinfo.value.__cause__, Image.DecompressionBombError)

    def test_decode_error_is_value_error(self, image_service):
        with pytest.raises(ValueError):
            image_service.decode(base64.b64encode(b"xx").decode("ascii"))


class TestEncode:
    @pytest.mark.parametrize("fmt,mime", [("png", "image/png"), ("jpeg", "image/jpeg"), ("webp", "image/webp")])
    def test_formats(self, image_service, noisy_grid, fmt, mime):
        encoded = image_service.encode(noisy_grid, fmt, quality=80)
        assert encoded.mime_type == mime
        assert encoded.format == fmt
        assert (encoded.width, encoded.height) == (64, 64)
        assert image_service.decode(encoded).size == (64, 64)

    def test_png_is_lossless(self, image_service, noisy_grid):
        encoded = image_service.encode(noisy_grid, "png")
        np.testing.assert_array_equal(image_service.decode(encoded).data, noisy_grid.data)

    def test_jpeg_quality_changes_size(self, image_service, noisy_grid):
        low = image_service.encode(noisy_grid, "jpeg", quality=10)
        high = image_service.encode(noisy_grid, "jpeg", quality=95)
        assert low.size_bytes < high.size_bytes

    def test_unsupported_format(self, image_service, random_grid):
        with pytest.raises(ValueError):
            image_service.encode(random_grid, "gif")

    def test_input_not_mutated(self, image_service, random_grid):
        before = random_grid.data.copy()
        image_service.encode(random_grid, "jpeg")
        np.testing.assert_array_equal(random_grid.data, before)

    def test_working_format_defaults_to_png(self, image_service, random_grid):
        assert image_service.encode_working(random_grid).mime_type == "image/png"


class TestUpload:
    def test_load_file(self, image_service, tmp_path, random_grid):
        path = tmp_path / "photo.png"
        Image.fromarray(random_grid.data).save(path)
        encoded = image_service.load_file(path)
        assert (encoded.width, encoded.height) == (7, 5)
        assert encoded.mime_type == "image/png"
        assert encoded.raw_bytes() == path.read_bytes()

    def test_missing_file(self, image_service, tmp_path):
        with pytest.raises(FileNotFoundError):
            image_service.load_file(tmp_path / "nope.png")

    def test_non_image_mime_rejected(self, image_service, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(DecodeError):
            image_service.load_file(path)

    def test_image_extension_with_garbage(self, image_service, tmp_path):
        path = tmp_path / "fake.jpg"
        path.write_bytes(b"\x00\x01garbage")
        with pytest.raises(DecodeError):
            image_service.load_file(path)

    def test_oversized_upload_rejected(self, image_service):
        with pytest.raises(DecodeError):
            image_service.load_bytes(oversized_png(), "huge.png", "image/png")

    def test_unknown_extension_uses_detected_format(self, image_service, tmp_path, random_grid):
        path = tmp_path / "snapshot"
        Image.fromarray(random_grid.data).save(path, format="WEBP", lossless=True)
        encoded = image_service.load_file(path)
        assert encoded.mime_type == "image/webp"
        assert (encoded.width, encoded.height) == (7, 5)

    def test_missing_mime_with_garbage(self, image_service):
        with pytest.raises(DecodeError):
            image_service.load_bytes(b"\x00\x01garbage", "blob", None)

    def test_load_data_url(self, image_service, random_grid):
        encoded = image_service.load_data_url(png_image(random_grid).data_url, "pasted.png")
        assert encoded.mime_type == "image/png"
        assert (encoded.width, encoded.height) == (7, 5)


class TestExport:
    def test_export_jpeg(self, image_service, random_grid):
        data = image_service.export(png_image(random_grid), ExportOptions(format="jpeg", quality=50))
        assert data[:2] == b"\xff\xd8"

    def test_export_png(self, image_service, random_grid):
        data = image_service.export(png_image(random_grid), ExportOptions())
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_save_export(self, image_service, random_grid, tmp_path):
        target = image_service.save_export(
            png_image(random_grid), ExportOptions(format="webp", filename="result"), tmp_path
        )
        assert target == tmp_path / "result.webp"
        with Image.open(target) as img:
            assert img.size == (7, 5)

    def test_options_normalised(self):
        options = ExportOptions(format="JPG", quality=3, filename="  ")
        assert options.format == "jpeg"
        assert options.quality == 10
        assert options.target_name == "edited-image.jpeg"

    def test_dialog_extension_follows_format(self):
        options = ExportOptions(format="png").with_target("/home/user/photos/holiday.jpg")
        assert options.target_name == "holiday.png"
        assert options.format == "png"

    def test_options_reject_unknown_format(self):
        with pytest.raises(ValueError):
            ExportOptions(format="bmp")


class TestEncodedImage:
    def test_data_url(self, random_grid):
        encoded = png_image(random_grid)
        assert encoded.data_url.startswith("data:image/png;base64,")

    def test_from_bytes(self):
        encoded = EncodedImage.from_bytes(b"abc", "image/png", 1, 1)
        assert encoded.raw_bytes() == b"abc"
