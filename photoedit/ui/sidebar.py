"""Боковая панель: открытие файла, информация, инструменты, AI-чат и настройки.

Принципы:
- SRP: управляет только UI параметров, не содержит алгоритмов.
- ISP: выдаёт параметры через компактные методы `get_*`, события через `on_*`.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional

import customtkinter as ctk

from photoedit.models.image_model import SessionState
from photoedit.models.settings_model import EditorSettings
from photoedit.services.process_service import LOCAL_MODEL_TYPES, TOOLS, ToolSpec

_LABEL_TO_TOOL = {spec.label: spec.tool_id for spec in TOOLS.values()}


class Sidebar(ctk.CTkScrollableFrame):
    """Панель с блоками: файл, информация, инструмент, AI-чат, настройки."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=300, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None
        self.on_apply_tool: Optional[Callable[[str, Dict[str, float]], None]] = None
        self.on_send_chat: Optional[Callable[[str], None]] = None
        self.on_save_settings: Optional[Callable[[EditorSettings], None]] = None

        bold = ctk.CTkFont(size=16, weight="bold")

        self._title = ctk.CTkLabel(self, text="Инструменты", font=bold)
        self._title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._open_btn = ctk.CTkButton(self, text="Открыть изображение…", command=self._emit_open_file)
        self._open_btn.grid(row=1, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Info section
        self._info_title = ctk.CTkLabel(self, text="Информация", font=bold)
        self._info_title.grid(row=2, column=0, padx=8, pady=(8, 4), sticky="w")

        self._name_val = ctk.StringVar(value="—")
        self._dims_val = ctk.StringVar(value="—")
        self._format_val = ctk.StringVar(value="—")
        self._history_val = ctk.StringVar(value="—")
        for row, var in enumerate((self._name_val, self._dims_val, self._format_val, self._history_val), start=3):
            label = ctk.CTkLabel(self, textvariable=var, wraplength=260, anchor="w", justify="left")
            label.grid(row=row, column=0, padx=8, pady=(0, 2), sticky="ew")

        # Tool section
        self._tool_title = ctk.CTkLabel(self, text="Обработка", font=bold)
        self._tool_title.grid(row=10, column=0, padx=8, pady=(12, 4), sticky="w")

        self._tool_menu = ctk.CTkOptionMenu(self, values=list(_LABEL_TO_TOOL), command=self._on_tool_change)
        self._tool_menu.grid(row=11, column=0, padx=8, pady=(0, 6), sticky="ew")

        self._params_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._params_frame.grid(row=12, column=0, padx=4, pady=(0, 4), sticky="ew")
        self._params_frame.grid_columnconfigure(0, weight=1)
        self._sliders: Dict[str, ctk.CTkSlider] = {}
        self._param_widgets: List[ctk.CTkBaseClass] = []

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=13, column=0, padx=8, pady=(0, 8), sticky="ew")
        buttons.grid_columnconfigure((0, 1), weight=1)
        self._apply_btn = ctk.CTkButton(buttons, text="Применить", command=self._emit_apply)
        self._apply_btn.grid(row=0, column=0, padx=(0, 4), sticky="ew")
        self._reset_btn = ctk.CTkButton(buttons, text="По умолчанию", command=self._reset_params)
        self._reset_btn.grid(row=0, column=1, padx=(4, 0), sticky="ew")

        # AI chat
        self._chat_title = ctk.CTkLabel(self, text="AI-ассистент", font=bold)
        self._chat_title.grid(row=20, column=0, padx=8, pady=(12, 4), sticky="w")
        self._chat_log = ctk.CTkTextbox(self, height=140, wrap="word", state="disabled")
        self._chat_log.grid(row=21, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._chat_entry = ctk.CTkEntry(self, placeholder_text="Например: remove the person")
        self._chat_entry.grid(row=22, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._chat_entry.bind("<Return>", lambda _e: self._emit_send_chat())
        self._chat_btn = ctk.CTkButton(self, text="Отправить", command=self._emit_send_chat)
        self._chat_btn.grid(row=23, column=0, padx=8, pady=(0, 8), sticky="ew")

        # Settings
        self._settings_title = ctk.CTkLabel(self, text="Настройки AI", font=bold)
        self._settings_title.grid(row=30, column=0, padx=8, pady=(12, 4), sticky="w")
        self._api_key_entry = ctk.CTkEntry(self, placeholder_text="API-ключ", show="•")
        self._api_key_entry.grid(row=31, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._provider_menu = ctk.CTkOptionMenu(self, values=["openai", "local"])
        self._provider_menu.grid(row=32, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._model_path_entry = ctk.CTkEntry(self, placeholder_text="Путь к локальной модели")
        self._model_path_entry.grid(row=33, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._model_type_menu = ctk.CTkOptionMenu(self, values=["general", *LOCAL_MODEL_TYPES])
        self._model_type_menu.grid(row=34, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._save_settings_btn = ctk.CTkButton(self, text="Сохранить настройки", command=self._emit_save_settings)
        self._save_settings_btn.grid(row=35, column=0, padx=8, pady=(0, 8), sticky="ew")

        self._tool_menu.set(TOOLS["sharpen"].label)
        self._build_params(TOOLS["sharpen"])

    # ---- Public API ----
    def set_session_info(self, state: Optional[SessionState], history_index: int, history_length: int) -> None:
        """Отображает метаданные текущего изображения и позицию в истории."""
        if state is None:
            for var in (self._name_val, self._dims_val, self._format_val, self._history_val):
                var.set("—")
            return
        self._name_val.set(state.file_name or "—")
        self._dims_val.set(f"{state.width} × {state.height} px")
        self._format_val.set(f"{state.image.format.upper()}, {self._format_size(state.image.size_bytes)}")
        self._history_val.set(f"История: {history_index + 1} / {history_length}")

    def set_settings(self, settings: EditorSettings) -> None:
        self._api_key_entry.delete(0, "end")
        self._api_key_entry.insert(0, settings.api_key)
        self._provider_menu.set(settings.api_provider)
        self._model_path_entry.delete(0, "end")
        self._model_path_entry.insert(0, settings.local_model_path)
        self._model_type_menu.set(settings.local_model_type)

    def set_busy(self, busy: bool) -> None:
        state = "disabled" if busy else "normal"
        for widget in (self._open_btn, self._apply_btn, self._chat_btn, self._tool_menu):
            widget.configure(state=state)

    def append_chat(self, author: str, text: str) -> None:
        self._chat_log.configure(state="normal")
        self._chat_log.insert("end", f"{author}: {text}\n")
        self._chat_log.see("end")
        self._chat_log.configure(state="disabled")

    def get_tool_id(self) -> str:
        return _LABEL_TO_TOOL[self._tool_menu.get()]

    def get_params(self) -> Dict[str, float]:
        return {name: float(round(slider.get())) for name, slider in self._sliders.items()}

    # ---- Events ----
    def _emit_open_file(self) -> None:
        if self.on_open_file:
            self.on_open_file()

    def _emit_apply(self) -> None:
        if self.on_apply_tool:
            self.on_apply_tool(self.get_tool_id(), self.get_params())

    def _emit_send_chat(self) -> None:
        text = self._chat_entry.get().strip()
        if not text:
            return
        self._chat_entry.delete(0, "end")
        if self.on_send_chat:
            self.on_send_chat(text)

    def _emit_save_settings(self) -> None:
        if self.on_save_settings:
            self.on_save_settings(
                EditorSettings(
                    api_key=self._api_key_entry.get().strip(),
                    api_provider=self._provider_menu.get(),
                    local_model_path=self._model_path_entry.get().strip(),
                    local_model_type=self._model_type_menu.get(),
                )
            )

    def _on_tool_change(self, label: str) -> None:
        self._build_params(TOOLS[_LABEL_TO_TOOL[label]])

    # ---- Helpers ----
    def _build_params(self, spec: ToolSpec) -> None:
        """Пересобирает слайдеры под параметры выбранного инструмента."""
        for widget in self._param_widgets:
            widget.destroy()
        self._param_widgets.clear()
        self._sliders.clear()

        if not spec.params:
            hint = "AI-операция: нужен ключ или локальная модель" if spec.is_ai else "Без параметров"
            label = ctk.CTkLabel(self._params_frame, text=hint, anchor="w")
            label.grid(row=0, column=0, padx=4, pady=(0, 4), sticky="w")
            self._param_widgets.append(label)
            return

        for i, param in enumerate(spec.params):
            value_var = ctk.StringVar(value=f"{param.default:g}")
            label = ctk.CTkLabel(self._params_frame, text=f"{param.label}:", anchor="w")
            value = ctk.CTkLabel(self._params_frame, textvariable=value_var, width=40, anchor="e")
            slider = ctk.CTkSlider(
                self._params_frame,
                from_=param.min,
                to=param.max,
                number_of_steps=int(param.max - param.min),
                command=lambda v, var=value_var: var.set(f"{int(round(v))}"),
            )
            slider.set(param.default)
            label.grid(row=i * 2, column=0, padx=4, pady=(4, 0), sticky="w")
            value.grid(row=i * 2, column=1, padx=4, pady=(4, 0), sticky="e")
            slider.grid(row=i * 2 + 1, column=0, columnspan=2, padx=4, pady=(0, 4), sticky="ew")
            self._sliders[param.name] = slider
            self._param_widgets.extend((label, value, slider))

    def _reset_params(self) -> None:
        self._build_params(TOOLS[self.get_tool_id()])

    def _format_size(self, size_bytes: Optional[int]) -> str:
        if size_bytes is None:
            return "—"
        thresholds = [("Б", 1024), ("КБ", 1024**2), ("МБ", 1024**3)]
        for label, limit in thresholds:
            if size_bytes < limit:
                if label == "Б":
                    return f"{size_bytes} {label}"
                value = size_bytes / (limit // 1024)
                return f"{value:.1f} {label}"
        return f"{size_bytes / 1024**3:.1f} ГБ"
