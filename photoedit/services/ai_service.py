"""Шлюз к внешнему vision/chat API.

Реального редактирования (inpainting, сегментации) здесь нет: запрос уходит в
OpenAI-совместимый `chat/completions`, текстовый анализ логируется, а
изображение возвращается без изменений.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from photoedit.errors import ProcessingError
from photoedit.models.image_model import split_data_url
from photoedit.models.settings_model import EditorSettings

logger = logging.getLogger(__name__)

AI_OPERATIONS = ("removeObject", "changeBackground", "enhance")

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4.1-mini"


class AIGateway:
    def __init__(
        self,
        settings: EditorSettings,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = 120.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._http = http or requests.Session()

    def process(
        self,
        image_base64: str,
        prompt: str,
        operation: str,
        model_type: str = "openai",
    ) -> str:
        """Отправляет изображение и запрос во внешнюю модель.

        Returns:
            base64 изображения (сейчас — исходное, без изменений).

        Raises:
            ProcessingError: неизвестная операция, нет ключа, сетевой сбой или ответ не 2xx.
        """
        if operation not in AI_OPERATIONS:
            raise ProcessingError(f"Неизвестная AI-операция: {operation}")
        _mime, payload = split_data_url(image_base64)

        if self.settings.api_provider == "local" and self.settings.local_model_path:
            return self.process_with_local_model(payload, self.settings.local_model_path, self.settings.local_model_type)

        logger.info("AI %s requested via %s (model type %s)", operation, self.model, model_type)
        analysis = self._complete(
            f"Analyze this image and describe how to perform this edit: {prompt}",
            payload,
        )
        logger.info("AI analysis for %s: %s", operation, analysis)
        return payload

    def chat(self, message: str, image_context: Optional[str] = None) -> str:
        """Свободный диалог с моделью; изображение передаётся как контекст."""
        if not message or not message.strip():
            raise ProcessingError("Пустое сообщение")
        payload = split_data_url(image_context)[1] if image_context else None
        return self._complete(message, payload)

    def process_with_local_model(self, image_base64: str, model_path: str, model_type: str) -> str:
        # Локальные модели пока не подключены: изображение возвращается как есть
        if model_type == "REMBG":
            logger.info("Simulating background removal (REMBG)")
        else:
            logger.info("Processing with local model %s at %s", model_type, model_path)
        return image_base64

    # ---- HTTP ----
    def _complete(self, text: str, image_base64: Optional[str]) -> str:
        if not self.settings.api_key:
            raise ProcessingError("Для AI-операций нужен API-ключ")

        content: list[Dict[str, Any]] = [{"type": "text", "text": text}]
        if image_base64:
            content.append(
                {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"}}
            )
        body = {"model": self.model, "messages": [{"role": "user", "content": content}]}

        try:
            response = self._http.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.settings.api_key}"},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as exc:
            logger.error("AI request timed out after %.0fs", self.timeout)
            raise ProcessingError(f"AI-запрос не уложился в {self.timeout:.0f} с") from exc
        except requests.exceptions.RequestException as exc:
            logger.error("AI request failed: %s", exc)
            raise ProcessingError(f"Ошибка AI API: {exc}") from exc
        except ValueError as exc:
            raise ProcessingError("AI API вернул некорректный JSON") from exc

        try:
            return str(data["choices"][0]["message"]["content"])
        except (KeyError, IndexError, TypeError) as exc:
            raise ProcessingError("Неожиданный формат ответа AI API") from exc
