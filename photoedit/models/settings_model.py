"""Настройки редактора (ключ-значение), загружаются один раз при старте."""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass(frozen=True)
class EditorSettings:
    """Конфигурация AI-функций.

    Fields:
        api_key: Ключ внешнего AI API; пустая строка отключает облачные операции.
        api_provider: "openai" | "local".
        local_model_path: Путь к локальной модели.
        local_model_type: Тип локальной модели ("general", "REMBG", ...).
    """
    api_key: str = ""
    api_provider: str = "openai"
    local_model_path: str = ""
    local_model_type: str = "general"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.api_key or self.local_model_path)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "apiKey": data["api_key"],
            "apiProvider": data["api_provider"],
            "localModelPath": data["local_model_path"],
            "localModelType": data["local_model_type"],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorSettings":
        defaults = cls()
        return cls(
            api_key=str(data.get("apiKey", defaults.api_key) or ""),
            api_provider=str(data.get("apiProvider", defaults.api_provider) or defaults.api_provider),
            local_model_path=str(data.get("localModelPath", defaults.local_model_path) or ""),
            local_model_type=str(data.get("localModelType", defaults.local_model_type) or defaults.local_model_type),
        )
