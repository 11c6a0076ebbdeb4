"""Контроллер приложения: оркестрация UI и сессии редактирования.

SOLID:
- SRP: класс связывает UI с `EditingSession` (без логики обработки изображений).
- DIP: зависит от сессии и сервисов как от ролей; конкретные реализации инкапсулированы.
Clean Code:
- Обработчики компактны; ошибки сессии показываются пользователю и не роняют главный цикл.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from tkinter import TclError, filedialog, messagebox
from typing import Callable, Dict

import customtkinter as ctk

from photoedit.controllers.session_controller import EditingSession
from photoedit.errors import EditorError, NoImageError
from photoedit.models.image_model import ExportOptions, SessionState
from photoedit.models.settings_model import EditorSettings
from photoedit.services.image_service import ImageService
from photoedit.services.settings_service import SettingsService
from photoedit.ui.bottom_bar import BottomBar
from photoedit.ui.image_viewer import ImageViewer
from photoedit.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)


@dataclass
class AppController:
    """Связывает элементы UI с сессией редактирования.

    Ответственности:
    - Бинд событий (UI -> контроллер).
    - Загрузка, применение инструментов, отмена/повтор, чат и экспорт через `EditingSession`.
    - Блокировка UI на время операции и отображение ошибок.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk
    session: EditingSession
    settings_service: SettingsService

    _image_service: ImageService = field(default_factory=ImageService)

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами."""
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_apply_tool = self._handle_apply_tool
        self.sidebar.on_send_chat = self._handle_send_chat
        self.sidebar.on_save_settings = self._handle_save_settings

        self.viewer.on_zoom_change = self.bottom.set_zoom_percent

        self.bottom.on_undo = self._handle_undo
        self.bottom.on_redo = self._handle_redo
        self.bottom.on_zoom_change = self.viewer.set_zoom_percent
        self.bottom.on_zoom_fit = self._handle_zoom_fit
        self.bottom.on_compare_mode_change = self.viewer.set_compare_mode
        self.bottom.on_wipe_change = self.viewer.set_wipe_percent
        self.bottom.on_export = self._handle_export

        self.session.on_change = self._handle_session_change
        self.sidebar.set_settings(self.session.settings)
        self.bottom.set_history_state(False, False)

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title="Выберите изображение",
                filetypes=(
                    ("Images", "*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.webp"),
                    ("All files", "*.*"),
                ),
            )
        except TclError:
            # Silent fail if dialog cannot open
            return

        if not file_path:
            return

        def load() -> str:
            state = self.session.load_file(file_path)
            self.viewer.set_zoom_to_fit()
            self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())
            return f"Загружено: {state.file_name} ({state.width}×{state.height})"

        self._run(load, (FileNotFoundError, EditorError))

    def _handle_apply_tool(self, tool_id: str, params: Dict[str, float]) -> None:
        def apply() -> str:
            self.session.apply_tool(tool_id, params)
            return f"Применено: {tool_id}"

        self._run(apply)

    def _handle_undo(self) -> None:
        self.bottom.set_status("Отменено" if self.session.undo() else "Нечего отменять")

    def _handle_redo(self) -> None:
        self.bottom.set_status("Повторено" if self.session.redo() else "Нечего повторять")

    def _handle_send_chat(self, message: str) -> None:
        self.sidebar.append_chat("Вы", message)

        def chat() -> str:
            reply = self.session.send_chat(message)
            self.sidebar.append_chat("AI", reply.message)
            return reply.message if reply.applied else "Ответ получен"

        self._run(chat)

    def _handle_save_settings(self, settings: EditorSettings) -> None:
        try:
            self.settings_service.save(settings)
        except OSError as exc:
            messagebox.showerror("Настройки", f"Не удалось сохранить настройки: {exc}")
            return
        self.session.update_settings(settings)
        self.bottom.set_status("Настройки сохранены" + ("" if settings.ai_enabled else " (AI отключён)"))

    def _handle_export(self, options: ExportOptions) -> None:
        if not self.session.has_image:
            self.bottom.set_status(str(NoImageError("Сначала загрузите изображение")))
            return
        try:
            target = filedialog.asksaveasfilename(
                title="Экспорт",
                initialfile=options.target_name,
                defaultextension=f".{options.format}",
                filetypes=[(options.format.upper(), f"*.{options.format}")],
            )
        except TclError:
            return
        if not target:
            return

        def export() -> str:
            path = self.session.save_export(options.with_target(target), Path(target).parent)
            return f"Сохранено: {path}"

        self._run(export, (OSError, EditorError))

    def _handle_zoom_fit(self) -> None:
        self.viewer.set_zoom_to_fit()
        self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())

    def _handle_session_change(self, state: SessionState) -> None:
        original = self.session.original or state.image
        self.viewer.set_images(
            self._image_service.to_pil(original),
            self._image_service.to_pil(state.image),
        )
        self.sidebar.set_session_info(state, self.session.history_index, self.session.history_length)
        self.bottom.set_history_state(self.session.can_undo, self.session.can_redo)

    # ---- Helpers ----
    def _run(self, action: Callable[[], str], errors: tuple = (EditorError,)) -> None:
        """Выполняет операцию с заблокированным UI; ошибки — в строку статуса и диалог."""
        self._set_busy(True)
        try:
            status = action()
        except errors as exc:
            logger.warning("Operation failed: %s", exc)
            self.bottom.set_status(str(exc))
            messagebox.showerror("Ошибка", str(exc))
        else:
            self.bottom.set_status(status)
        finally:
            self._set_busy(False)

    def _set_busy(self, busy: bool) -> None:
        self.sidebar.set_busy(busy)
        self.bottom.set_busy(busy)
        self.viewer.set_busy(busy)
        if not busy:
            self.bottom.set_history_state(self.session.can_undo, self.session.can_redo)
        self.window.configure(cursor="watch" if busy else "")
        self.window.update_idletasks()
