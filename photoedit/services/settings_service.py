"""Хранение настроек в локальном JSON-файле (ключ-значение).

Отсутствие файла или ключа — не ошибка: применяются значения по умолчанию,
AI-функции остаются выключенными.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Optional

from photoedit.models.settings_model import EditorSettings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".photoedit" / "settings.json"


class SettingsService:
    def __init__(self, path: Optional[str | Path] = None) -> None:
        if path is None:
            path = os.environ.get("PHOTOEDIT_SETTINGS") or DEFAULT_SETTINGS_PATH
        self.path = Path(path)

    def load(self) -> EditorSettings:
        """Читает настройки; при ошибке чтения возвращает значения по умолчанию."""
        settings = EditorSettings()
        if self.path.is_file():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Cannot read settings from %s: %s", self.path, exc)
            else:
                if isinstance(data, dict):
                    settings = EditorSettings.from_dict(data)
                else:
                    logger.warning("Ignoring settings file %s: expected an object", self.path)

        env_key = os.environ.get("OPENAI_API_KEY", "")
        if not settings.api_key and env_key:
            settings = replace(settings, api_key=env_key)
        return settings

    def save(self, settings: EditorSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
        logger.info("Settings saved to %s", self.path)
