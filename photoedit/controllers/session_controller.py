"""Сессия редактирования: состояние изображения, история и применение инструментов.

SOLID:
- SRP: единственный владелец `SessionState` и `EditHistory`; UI только читает их.
- DIP: сервисы (кодеки, фильтры, AI-шлюз) передаются в конструктор.
Clean Code:
- Каждая операция либо целиком применяется, либо оставляет состояние нетронутым.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Mapping, Optional

from photoedit.errors import NoImageError, NoOpError, ProcessingError, UnknownToolError
from photoedit.models.image_model import EncodedImage, ExportOptions, SessionState
from photoedit.models.settings_model import EditorSettings
from photoedit.services.ai_service import AI_OPERATIONS, AIGateway
from photoedit.services.history_service import EditHistory
from photoedit.services.image_service import ImageService
from photoedit.services.process_service import ProcessService, get_tool

logger = logging.getLogger(__name__)

# Порядок категорий важен: первая совпавшая побеждает
INTENT_KEYWORDS = (
    ("remove-object", ("remove", "delete", "erase")),
    ("background", ("background", "replace bg", "new background")),
    ("enhance", ("enhance", "improve", "better")),
)


@dataclass(frozen=True)
class EditingIntent:
    operation: str  # id инструмента: remove-object | background | enhance
    prompt: str


@dataclass(frozen=True)
class ChatReply:
    message: str
    intent: Optional[EditingIntent] = None
    applied: bool = False


def extract_intent(text: str) -> Optional[EditingIntent]:
    """Поиск намерения по подстрокам в сообщении (без учёта регистра)."""
    lowered = text.lower()
    for operation, keywords in INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return EditingIntent(operation=operation, prompt=text)
    return None


class EditingSession:
    def __init__(
        self,
        settings: Optional[EditorSettings] = None,
        image_service: Optional[ImageService] = None,
        process_service: Optional[ProcessService] = None,
        gateway: Optional[AIGateway] = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self._image_service = image_service or ImageService()
        self._process_service = process_service or ProcessService()
        self._gateway = gateway or AIGateway(self.settings)
        self._history = EditHistory()
        self._state: Optional[SessionState] = None
        self._is_processing = False
        self.on_change: Optional[Callable[[SessionState], None]] = None

    def update_settings(self, settings: EditorSettings) -> None:
        """Явное сохранение настроек пользователем; история и изображение не меняются."""
        self.settings = settings
        self._gateway.settings = settings

    # ---- Read-only view ----
    @property
    def state(self) -> Optional[SessionState]:
        return self._state

    @property
    def has_image(self) -> bool:
        return self._state is not None

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo()

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo()

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def history_index(self) -> int:
        return self._history.index

    @property
    def original(self) -> Optional[EncodedImage]:
        entries = self._history.entries
        return entries[0] if entries else None

    # ---- Loading ----
    def load_image(self, image: EncodedImage, file_name: str) -> SessionState:
        """Новое изображение сбрасывает историю. При ошибке декодирования состояние не меняется."""
        grid = self._image_service.decode(image)
        if (image.width, image.height) != grid.size:
            image = EncodedImage(image.data_base64, image.mime_type, grid.width, grid.height)
        self._history.reset(image)
        self._set_state(image, file_name)
        logger.info("Image loaded: %s (%dx%d)", file_name, grid.width, grid.height)
        return self._state

    def load_file(self, file_path: str | Path) -> SessionState:
        image = self._image_service.load_file(file_path)
        return self.load_image(image, Path(file_path).name)

    # ---- Tools ----
    def apply_tool(self, tool_id: str, params: Optional[Mapping[str, float]] = None) -> SessionState:
        """Применяет локальный фильтр к текущему изображению и кладёт результат в историю.

        Raises:
            NoImageError: изображение не загружено.
            UnknownToolError: неизвестный инструмент.
            ProcessingError: сбой фильтра; отображаемое изображение не меняется.
        """
        state = self._require_image()
        spec = get_tool(tool_id)
        if spec.is_ai:
            return self.apply_ai(tool_id, spec.prompt or spec.label)
        if not self._process_service.has_filter(tool_id):
            raise UnknownToolError(tool_id)

        with self._processing(f"Не удалось применить «{spec.label}»"):
            grid = self._image_service.decode(state.image)
            result = self._process_service.apply(tool_id, grid, params)
            encoded = self._image_service.encode_working(result)
        self._commit(encoded)
        logger.info("Applied %s %s", tool_id, dict(params or {}))
        return self._state

    def apply_ai(self, operation: str, prompt: str) -> SessionState:
        """Передаёт текущее изображение во внешний AI-шлюз.

        `operation` — id AI-инструмента (`remove-object`) или имя операции шлюза (`removeObject`).
        """
        state = self._require_image()
        if operation not in AI_OPERATIONS:
            spec = get_tool(operation)
            if not spec.is_ai:
                raise UnknownToolError(operation)
            operation = spec.ai_operation

        with self._processing("AI-операция не выполнена"):
            result_b64 = self._gateway.process(
                state.image.data_base64,
                prompt,
                operation,
                model_type=self.settings.api_provider,
            )
            grid = self._image_service.decode(result_b64)
            if result_b64 == state.image.data_base64:
                encoded = EncodedImage(result_b64, state.image.mime_type, grid.width, grid.height)
            else:
                encoded = self._image_service.encode_working(grid)
        self._commit(encoded)
        logger.info("Applied AI operation %s", operation)
        return self._state

    # ---- History ----
    def undo(self) -> bool:
        return self._step(self._history.undo, "undo")

    def redo(self) -> bool:
        return self._step(self._history.redo, "redo")

    # ---- Chat ----
    def extract_intent(self, text: str) -> Optional[EditingIntent]:
        return extract_intent(text)

    def send_chat(self, message: str) -> ChatReply:
        """Сообщение с распознанным намерением запускает AI-операцию, иначе уходит в чат."""
        intent = extract_intent(message)
        if intent is not None and self.has_image and self.settings.ai_enabled:
            self.apply_ai(intent.operation, intent.prompt)
            label = get_tool(intent.operation).label
            return ChatReply(message=f"Готово: {label}", intent=intent, applied=True)

        context = self._state.image.data_base64 if self._state else None
        with self._processing("Чат недоступен"):
            reply = self._gateway.chat(message, context)
        return ChatReply(message=reply, intent=intent, applied=False)

    # ---- Export ----
    def export(self, options: ExportOptions) -> bytes:
        state = self._require_image()
        return self._image_service.export(state.image, options)

    def save_export(self, options: ExportOptions, directory: str | Path) -> Path:
        state = self._require_image()
        return self._image_service.save_export(state.image, options, directory)

    # ---- Helpers ----
    def _require_image(self) -> SessionState:
        if self._state is None:
            raise NoImageError("Сначала загрузите изображение")
        return self._state

    @contextmanager
    def _processing(self, message: str) -> Iterator[None]:
        """Флаг `is_processing` на время операции; любой сбой превращается в `ProcessingError`."""
        if self._is_processing:
            raise ProcessingError("Другая операция ещё выполняется")
        self._is_processing = True
        try:
            yield
        except ProcessingError:
            logger.error("%s", message, exc_info=True)
            raise
        except Exception as exc:
            logger.error("%s", message, exc_info=True)
            raise ProcessingError(f"{message}: {exc}") from exc
        finally:
            self._is_processing = False

    def _commit(self, image: EncodedImage) -> None:
        self._history.push(image)
        self._set_state(image, self._state.file_name if self._state else "")

    def _step(self, move: Callable[[], EncodedImage], name: str) -> bool:
        if self._state is None:
            logger.info("Nothing to %s: no image loaded", name)
            return False
        try:
            image = move()
        except NoOpError:
            logger.info("Nothing to %s", name)
            return False
        self._set_state(image, self._state.file_name)
        logger.info("History %s -> %d/%d", name, self._history.index + 1, len(self._history))
        return True

    def _set_state(self, image: EncodedImage, file_name: str) -> None:
        self._state = SessionState(image=image, width=image.width, height=image.height, file_name=file_name)
        if self.on_change:
            self.on_change(self._state)

