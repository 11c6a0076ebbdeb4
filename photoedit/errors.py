"""Иерархия ошибок редактора.

Все ошибки наследуются от `EditorError`, чтобы UI мог перехватывать их одним
обработчиком и не ронять главный цикл.
"""
from __future__ import annotations


class EditorError(Exception):
    """Базовая ошибка редактора."""


class DecodeError(EditorError, ValueError):
    """Полезная нагрузка не является поддерживаемым изображением или повреждена."""


class UnknownToolError(EditorError, KeyError):
    """Неизвестный идентификатор инструмента."""

    def __init__(self, tool_id: str) -> None:
        super().__init__(tool_id)
        self.tool_id = tool_id

    def __str__(self) -> str:
        return f"Неизвестный инструмент: {self.tool_id!r}"


class NoImageError(EditorError):
    """Операция требует загруженного изображения."""


class NoOpError(EditorError):
    """Отмена/повтор на границе истории."""


class ProcessingError(EditorError):
    """Сбой фильтра или AI-запроса; состояние сессии откатывается."""
