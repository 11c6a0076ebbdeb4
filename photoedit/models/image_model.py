"""Модели данных для изображений.

Принципы:
- SRP: только структуры данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, replace
from pathlib import PurePath
from typing import Tuple

import numpy as np

from photoedit.errors import DecodeError

MIME_BY_FORMAT = {"png": "image/png", "jpeg": "image/jpeg", "webp": "image/webp"}
FORMAT_BY_MIME = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class PixelGrid:
    """Декодированный RGBA-буфер (uint8), построчно, начало координат слева сверху.

    Fields:
        width: Ширина, px.
        height: Высота, px.
        data: Массив формы (height, width, 4).
    """
    width: int
    height: int
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.data.dtype != np.uint8:
            raise ValueError(f"Ожидался uint8, получено {self.data.dtype}")
        if self.data.shape != (self.height, self.width, 4):
            raise ValueError(
                f"Форма буфера {self.data.shape} не соответствует {self.width}×{self.height}×4"
            )

    @classmethod
    def from_array(cls, data: np.ndarray) -> "PixelGrid":
        arr = np.ascontiguousarray(data, dtype=np.uint8)
        height, width = arr.shape[:2]
        return cls(width=width, height=height, data=arr)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = (int(v) for v in self.data[y, x])
        return r, g, b, a

    def with_data(self, data: np.ndarray) -> "PixelGrid":
        """Новая сетка того же размера с другими значениями."""
        return PixelGrid(width=self.width, height=self.height, data=np.ascontiguousarray(data, dtype=np.uint8))


@dataclass(frozen=True)
class EncodedImage:
    """Закодированное изображение (PNG/JPEG/WebP) в base64 вместе с размерами."""
    data_base64: str
    mime_type: str
    width: int
    height: int

    @property
    def format(self) -> str:
        return FORMAT_BY_MIME.get(self.mime_type, self.mime_type.split("/")[-1])

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_base64}"

    @property
    def size_bytes(self) -> int:
        return len(self.raw_bytes())

    def raw_bytes(self) -> bytes:
        return decode_base64(self.data_base64)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str, width: int, height: int) -> "EncodedImage":
        return cls(
            data_base64=base64.b64encode(data).decode("ascii"),
            mime_type=mime_type,
            width=width,
            height=height,
        )


def split_data_url(payload: str) -> Tuple[str | None, str]:
    """Разделяет data URL на (mime, base64). Для «голого» base64 mime = None."""
    if payload.startswith("data:") and "base64," in payload:
        header, body = payload.split("base64,", 1)
        mime = header[len("data:"):].rstrip(";") or None
        return mime, body
    return None, payload


def decode_base64(payload: str) -> bytes:
    _mime, body = split_data_url(payload)
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError("Некорректная base64-строка изображения") from exc


@dataclass(frozen=True)
class SessionState:
    """Отображаемое изображение сессии, его размеры и имя исходного файла."""
    image: EncodedImage
    width: int
    height: int
    file_name: str


@dataclass(frozen=True)
class ExportOptions:
    """Параметры экспорта: формат, качество (10–100) и имя файла без расширения."""
    format: str = "png"
    quality: int = 90
    filename: str = "edited-image"

    def __post_init__(self) -> None:
        fmt = self.format.lower()
        if fmt == "jpg":
            fmt = "jpeg"
        if fmt not in MIME_BY_FORMAT:
            raise ValueError(f"Неподдерживаемый формат экспорта: {self.format}")
        object.__setattr__(self, "format", fmt)
        object.__setattr__(self, "quality", max(10, min(100, int(self.quality))))
        object.__setattr__(self, "filename", self.filename.strip() or "edited-image")

    @property
    def target_name(self) -> str:
        return f"{self.filename}.{self.format}"

    def with_target(self, path: str) -> "ExportOptions":
        """Имя из диалога сохранения; расширение всегда соответствует формату."""
        return replace(self, filename=PurePath(path).stem)
