"""Доступ к пиксельному буферу: декодирование, кодирование, загрузка и экспорт.

Принципы:
- SRP: класс отвечает только за преобразования «байты ↔ пиксели».
- OCP: новые источники (стрим, URL) можно добавить отдельными методами.
- LSP/ISP: возвращает `PixelGrid`/`EncodedImage` с предсказуемыми полями.
"""
from __future__ import annotations

import io
import logging
import mimetypes
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from photoedit.errors import DecodeError
from photoedit.models.image_model import (
    MIME_BY_FORMAT,
    EncodedImage,
    ExportOptions,
    PixelGrid,
    decode_base64,
    split_data_url,
)

logger = logging.getLogger(__name__)

_PIL_FORMAT = {"png": "PNG", "jpeg": "JPEG", "webp": "WEBP"}


class ImageService:
    def __init__(self, working_format: str = "png", working_quality: int = 95) -> None:
        if working_format not in MIME_BY_FORMAT:
            raise ValueError(f"Неподдерживаемый рабочий формат: {working_format}")
        self.working_format = working_format
        self.working_quality = working_quality

    # ---- Pixel buffer access ----
    def decode(self, image: Union[EncodedImage, str]) -> PixelGrid:
        """Декодирует изображение в RGBA-сетку.

        Args:
            image: `EncodedImage`, data URL или «голая» base64-строка.

        Raises:
            DecodeError: если данные не являются изображением или обрезаны.
        """
        payload = image.data_base64 if isinstance(image, EncodedImage) else image
        raw = decode_base64(payload)
        pil_image = self._open(raw)
        return PixelGrid.from_array(np.array(pil_image, dtype=np.uint8))

    def encode(self, grid: PixelGrid, format: str = "png", quality: int = 95) -> EncodedImage:
        """Кодирует сетку в PNG/JPEG/WebP. Входная сетка не изменяется.

        `quality` (0–100) учитывается только для сжатия с потерями.
        """
        fmt = format.lower()
        if fmt == "jpg":
            fmt = "jpeg"
        if fmt not in _PIL_FORMAT:
            raise ValueError(f"Неподдерживаемый формат: {format}")
        pil_image = Image.fromarray(grid.data.copy())
        data = self._save(pil_image, fmt, quality)
        return EncodedImage.from_bytes(data, MIME_BY_FORMAT[fmt], grid.width, grid.height)

    def encode_working(self, grid: PixelGrid) -> EncodedImage:
        """Кодирует результат фильтра в рабочий формат истории."""
        return self.encode(grid, self.working_format, self.working_quality)

    def to_pil(self, image: EncodedImage) -> Image.Image:
        """RGBA-изображение PIL для отображения."""
        return Image.fromarray(self.decode(image).data)

    # ---- Upload ----
    def load_file(self, file_path: str | Path) -> EncodedImage:
        """Загружает изображение с диска, сохраняя исходные байты.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            DecodeError: если тип файла не `image/*` или содержимое не распознано.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")
        mime_type, _ = mimetypes.guess_type(path.name)
        return self.load_bytes(path.read_bytes(), path.name, mime_type)

    def load_bytes(self, data: bytes, file_name: str, mime_type: Optional[str] = None) -> EncodedImage:
        """Оборачивает загруженные байты в `EncodedImage` после проверки типа.

        Без `mime_type` тип берётся из формата, распознанного Pillow.
        """
        if mime_type and not mime_type.startswith("image/"):
            raise DecodeError(f"Файл не является изображением: {file_name} ({mime_type})")
        pil_image = self._read(data)
        if not mime_type:
            mime_type = Image.MIME.get(pil_image.format or "")
            if not mime_type:
                raise DecodeError(f"Файл не является изображением: {file_name} (тип неизвестен)")
        width, height = pil_image.size
        logger.info("Loaded %s (%dx%d, %d bytes)", file_name, width, height, len(data))
        return EncodedImage.from_bytes(data, mime_type, width, height)

    def load_data_url(self, data_url: str, file_name: str) -> EncodedImage:
        mime_type, _body = split_data_url(data_url)
        return self.load_bytes(decode_base64(data_url), file_name, mime_type)

    # ---- Export ----
    def export(self, image: EncodedImage, options: ExportOptions) -> bytes:
        """Перекодирует отображаемое изображение в выбранный формат и качество."""
        grid = self.decode(image)
        pil_image = Image.fromarray(grid.data)
        return self._save(pil_image, options.format, options.quality)

    def save_export(self, image: EncodedImage, options: ExportOptions, directory: str | Path) -> Path:
        target = Path(directory) / options.target_name
        target.write_bytes(self.export(image, options))
        logger.info("Exported %s", target)
        return target

    # ---- Helpers ----
    def _open(self, data: bytes) -> Image.Image:
        return self._read(data).convert("RGBA")

    def _read(self, data: bytes) -> Image.Image:
        """Открывает и полностью читает байты; исходный формат Pillow сохраняется."""
        try:
            pil_image = Image.open(io.BytesIO(data))
            pil_image.load()
        except UnidentifiedImageError as exc:
            raise DecodeError("Данные не распознаны как изображение") from exc
        except Image.DecompressionBombError as exc:
            raise DecodeError(f"Изображение слишком велико: {exc}") from exc
        except (OSError, SyntaxError, ValueError) as exc:
            # Pillow сообщает об обрезанных файлах через OSError
            raise DecodeError(f"Изображение повреждено: {exc}") from exc
        return pil_image

    def _save(self, pil_image: Image.Image, fmt: str, quality: int) -> bytes:
        buffer = io.BytesIO()
        quality = max(0, min(100, int(quality)))
        if fmt == "png":
            pil_image.save(buffer, format="PNG")
        elif fmt == "jpeg":
            pil_image.convert("RGB").save(buffer, format="JPEG", quality=quality)
        else:
            pil_image.save(buffer, format="WEBP", quality=quality)
        return buffer.getvalue()
