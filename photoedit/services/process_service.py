from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

import numpy as np

from photoedit.errors import UnknownToolError
from photoedit.models.image_model import PixelGrid


@dataclass(frozen=True)
class ParamSpec:
    name: str
    label: str
    min: float
    max: float
    default: float

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, float(value)))


@dataclass(frozen=True)
class ToolSpec:
    """Описание инструмента: id, подпись, параметры и тип (локальный фильтр / AI)."""
    tool_id: str
    label: str
    params: Tuple[ParamSpec, ...] = ()
    ai_operation: Optional[str] = None
    prompt: str = ""  # запрос к модели для AI-инструментов

    @property
    def is_ai(self) -> bool:
        return self.ai_operation is not None

    def defaults(self) -> Dict[str, float]:
        return {p.name: p.default for p in self.params}


TOOLS: Dict[str, ToolSpec] = {
    spec.tool_id: spec
    for spec in (
        ToolSpec("sharpen", "Резкость", (
            ParamSpec("amount", "Сила", 0, 100, 50),
            ParamSpec("radius", "Радиус", 0, 10, 1),
        )),
        ToolSpec("denoise", "Шумоподавление", (
            ParamSpec("strength", "Сила", 0, 100, 30),
            ParamSpec("detail", "Сохранение деталей", 0, 100, 70),
        )),
        ToolSpec("red-eye", "Красные глаза", (
            ParamSpec("sensitivity", "Чувствительность", 0, 100, 50),
        )),
        ToolSpec("contrast", "Контраст", (
            ParamSpec("contrast", "Контраст", -100, 100, 0),
        )),
        ToolSpec("exposure", "Экспозиция", (
            ParamSpec("exposure", "Экспозиция", -100, 100, 0),
            ParamSpec("highlights", "Света", -100, 100, 0),
            ParamSpec("shadows", "Тени", -100, 100, 0),
        )),
        ToolSpec("color-correct", "Цветокоррекция", (
            ParamSpec("temperature", "Температура", -100, 100, 0),
            ParamSpec("tint", "Оттенок", -100, 100, 0),
            ParamSpec("saturation", "Насыщенность", -100, 100, 0),
        )),
        ToolSpec("auto-enhance", "Автоулучшение"),
        ToolSpec(
            "remove-object", "Удалить объект (AI)", ai_operation="removeObject",
            prompt="Remove the distracting object from this photo and fill the area naturally",
        ),
        ToolSpec(
            "background", "Сменить фон (AI)", ai_operation="changeBackground",
            prompt="Replace the background of this photo while keeping the subject intact",
        ),
        ToolSpec(
            "enhance", "Улучшить (AI)", ai_operation="enhance",
            prompt="Enhance the overall quality of this photo: sharpness, lighting and colour",
        ),
    )
}

LOCAL_MODEL_TYPES = ("GFPGAN", "Real-ESRGAN", "REMBG", "ONNX")


def get_tool(tool_id: str) -> ToolSpec:
    try:
        return TOOLS[tool_id]
    except KeyError:
        raise UnknownToolError(tool_id) from None


def capabilities() -> Dict[str, list]:
    """Список поддерживаемых операций: локальные фильтры, AI-операции, локальные модели."""
    return {
        "clientSide": [t.tool_id for t in TOOLS.values() if not t.is_ai],
        "aiPowered": [t.ai_operation for t in TOOLS.values() if t.is_ai],
        "localModels": list(LOCAL_MODEL_TYPES),
    }


# ---------- Вспомогательные функции ----------
def _store(values: np.ndarray) -> np.ndarray:
    """
    Запись в 8-битный буфер: округление к ближайшему (половины к чётному) и насыщение [0, 255].
    """
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(value)))


class ProcessService:
    """Чистые фильтры над `PixelGrid`: вход не изменяется, размеры сохраняются, альфа не трогается."""

    def __init__(self) -> None:
        self._filters: Dict[str, Callable[..., PixelGrid]] = {
            "sharpen": self.sharpen,
            "denoise": self.denoise,
            "contrast": self.adjust_contrast,
            "exposure": self.adjust_exposure,
            "color-correct": self.color_correct,
            "red-eye": self.remove_red_eye,
            "auto-enhance": self.auto_enhance,
        }

    def has_filter(self, tool_id: str) -> bool:
        return tool_id in self._filters

    def resolve_params(self, tool_id: str, params: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
        """Дополняет параметры значениями по умолчанию, приводит к float и ограничивает диапазоном.

        Неизвестные имена игнорируются.
        """
        spec = get_tool(tool_id)
        given = dict(params or {})
        return {p.name: p.clamp(given.get(p.name, p.default)) for p in spec.params}

    def apply(self, tool_id: str, grid: PixelGrid, params: Optional[Mapping[str, float]] = None) -> PixelGrid:
        """Применяет локальный фильтр по идентификатору инструмента."""
        fn = self._filters.get(tool_id)
        if fn is None:
            raise UnknownToolError(tool_id)
        return fn(grid, **self.resolve_params(tool_id, params))

    # ---------- Резкость ----------
    def sharpen(self, grid: PixelGrid, amount: float = 50, radius: float = 1) -> PixelGrid:
        """
        Свёртка ядром [[0,-1,0],[-1,5,-1],[0,-1,0]] по внутренним пикселям,
        смешанная с исходным значением с весом strength = amount/100*2.
        Граничные пиксели не изменяются. `radius` принимается, но ядро фиксировано 3×3.
        """
        strength = (_clamp(amount, 0, 100) / 100.0) * 2
        out = grid.data.copy()
        if grid.width < 3 or grid.height < 3:
            return grid.with_data(out)

        rgb = grid.data[..., :3].astype(np.float64)
        center = rgb[1:-1, 1:-1]
        # Векторизованная свёртка через сдвиги
        convolved = (
            5 * center
            - rgb[0:-2, 1:-1]
            - rgb[2:, 1:-1]
            - rgb[1:-1, 0:-2]
            - rgb[1:-1, 2:]
        )
        out[1:-1, 1:-1, :3] = _store(center + (convolved - center) * strength)
        return grid.with_data(out)

    # ---------- Шумоподавление ----------
    def denoise(self, grid: PixelGrid, strength: float = 30, detail: float = 70) -> PixelGrid:
        """
        out = round(orig * d + orig * (1 - d) / 2), где d = detail/100.
        """
        detail_preserve = _clamp(detail, 0, 100) / 100.0
        out = grid.data.copy()
        rgb = grid.data[..., :3].astype(np.float64)
        values = rgb * detail_preserve + rgb * (1 - detail_preserve) / 2
        out[..., :3] = _store(_round_half_up(values))
        return grid.with_data(out)

    # ---------- Контраст ----------
    def adjust_contrast(self, grid: PixelGrid, contrast: float = 0) -> PixelGrid:
        """
        factor = (contrast/100 + 1) * 1.5; out = (orig - 128) * factor + 128.
        """
        factor = (_clamp(contrast, -100, 100) / 100.0 + 1) * 1.5
        out = grid.data.copy()
        rgb = grid.data[..., :3].astype(np.float64)
        out[..., :3] = _store((rgb - 128) * factor + 128)
        return grid.with_data(out)

    # ---------- Экспозиция ----------
    def adjust_exposure(
        self,
        grid: PixelGrid,
        exposure: float = 0,
        highlights: float = 0,
        shadows: float = 0,
    ) -> PixelGrid:
        """
        Экспозиция масштабирует значение, затем света (> 0.5) и тени (<= 0.5)
        растягиваются относительно середины диапазона.
        """
        exposure = _clamp(exposure, -100, 100)
        highlights = _clamp(highlights, -100, 100)
        shadows = _clamp(shadows, -100, 100)

        out = grid.data.copy()
        value = grid.data[..., :3].astype(np.float64) * (1 + exposure / 100.0)
        normalized = value / 255.0
        value = np.where(
            normalized > 0.5,
            255.0 * (0.5 + (normalized - 0.5) * (1 + highlights / 200.0)),
            255.0 * normalized * (1 + shadows / 200.0),
        )
        out[..., :3] = _store(value)
        return grid.with_data(out)

    # ---------- Цветокоррекция ----------
    def color_correct(
        self,
        grid: PixelGrid,
        temperature: float = 0,
        tint: float = 0,
        saturation: float = 0,
    ) -> PixelGrid:
        """
        Сдвиг температуры (R+/B-) и оттенка (G), затем насыщенность относительно
        среднего (r+g+b)/3 с коэффициентом saturation/100*2.
        """
        temperature = _clamp(temperature, -100, 100)
        tint = _clamp(tint, -100, 100)
        sat_amount = (_clamp(saturation, -100, 100) / 100.0) * 2

        out = grid.data.copy()
        rgb = grid.data[..., :3].astype(np.float64)
        r = rgb[..., 0] + temperature / 100.0 * 50
        g = rgb[..., 1] + tint / 100.0 * 50
        b = rgb[..., 2] - temperature / 100.0 * 50
        gray = (r + g + b) / 3
        for channel, value in enumerate((r, g, b)):
            out[..., channel] = _store(_round_half_up(gray + (value - gray) * sat_amount))
        return grid.with_data(out)

    # ---------- Красные глаза ----------
    def remove_red_eye(self, grid: PixelGrid, sensitivity: float = 50) -> PixelGrid:
        """
        Пиксели с r > порога, r > 1.5g и r > 1.5b: r *= 0.6, g *= 0.8, b *= 0.8.
        Остальные пиксели не изменяются.
        """
        threshold = _clamp(sensitivity, 0, 100) / 100.0 * 100
        out = grid.data.copy()
        rgb = grid.data[..., :3].astype(np.float64)
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        mask = (r > threshold) & (r > 1.5 * g) & (r > 1.5 * b)
        if not mask.any():
            return grid.with_data(out)
        scaled = rgb[mask] * np.array([0.6, 0.8, 0.8])
        out[mask, :3] = _store(scaled)
        return grid.with_data(out)

    # ---------- Автоулучшение ----------
    def auto_enhance(self, grid: PixelGrid) -> PixelGrid:
        """Контраст(15) → экспозиция(10, 5, 5) → цветокоррекция(5, 0, 20)."""
        result = self.adjust_contrast(grid, contrast=15)
        result = self.adjust_exposure(result, exposure=10, highlights=5, shadows=5)
        return self.color_correct(result, temperature=5, tint=0, saturation=20)
