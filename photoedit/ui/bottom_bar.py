from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from photoedit.models.image_model import ExportOptions


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=96, **kwargs)

        # callbacks
        self.on_undo: Optional[Callable[[], None]] = None
        self.on_redo: Optional[Callable[[], None]] = None
        self.on_zoom_change: Optional[Callable[[int], None]] = None
        self.on_zoom_fit: Optional[Callable[[], None]] = None
        self.on_compare_mode_change: Optional[Callable[[str], None]] = None
        self.on_wipe_change: Optional[Callable[[int], None]] = None
        self.on_export: Optional[Callable[[ExportOptions], None]] = None

        # layout
        self.grid_columnconfigure(3, weight=1)  # zoom slider stretches

        # History
        self._undo_btn = ctk.CTkButton(self, text="↶ Отменить", width=96, command=lambda: self._emit(self.on_undo))
        self._undo_btn.grid(row=0, column=0, padx=(10, 4), pady=8, sticky="w")
        self._redo_btn = ctk.CTkButton(self, text="↷ Повторить", width=96, command=lambda: self._emit(self.on_redo))
        self._redo_btn.grid(row=0, column=1, padx=4, pady=8, sticky="w")

        # Zoom controls
        self._zoom_label = ctk.CTkLabel(self, text="Масштаб")
        self._zoom_label.grid(row=0, column=2, padx=(12, 6), pady=8, sticky="w")
        self._zoom_value = ctk.StringVar(value="100%")
        self._zoom_slider = ctk.CTkSlider(self, from_=10, to=400, number_of_steps=390, command=self._on_slider_change)
        self._zoom_slider.set(100)
        self._zoom_slider.grid(row=0, column=3, padx=6, pady=8, sticky="ew")
        self._zoom_value_label = ctk.CTkLabel(self, textvariable=self._zoom_value, width=48, anchor="w")
        self._zoom_value_label.grid(row=0, column=4, padx=(6, 6), pady=8, sticky="w")
        self._fit_btn = ctk.CTkButton(self, text="Fit", width=48, command=lambda: self._emit(self.on_zoom_fit))
        self._fit_btn.grid(row=0, column=5, padx=6, pady=8, sticky="w")

        # Compare
        self._compare_menu = ctk.CTkOptionMenu(self, values=["Нет", "Шторка", "2-up"], command=self._on_compare_mode)
        self._compare_menu.set("Нет")
        self._compare_menu.grid(row=0, column=6, padx=6, pady=8, sticky="w")
        self._wipe_slider = ctk.CTkSlider(self, from_=0, to=100, number_of_steps=100, width=120, command=self._on_wipe_slider)
        self._wipe_slider.set(50)
        self._toggle_wipe_slider(visible=False)

        # Export
        self._format_menu = ctk.CTkOptionMenu(self, values=["png", "jpeg", "webp"], width=80, command=self._on_format_change)
        self._format_menu.set("png")
        self._format_menu.grid(row=1, column=0, padx=(10, 4), pady=(0, 8), sticky="w")
        self._quality_value = ctk.StringVar(value="Качество 90%")
        self._quality_slider = ctk.CTkSlider(self, from_=10, to=100, number_of_steps=90, width=140, command=self._on_quality_change)
        self._quality_slider.set(90)
        self._quality_slider.grid(row=1, column=1, columnspan=2, padx=4, pady=(0, 8), sticky="ew")
        self._quality_label = ctk.CTkLabel(self, textvariable=self._quality_value, width=110, anchor="w")
        self._quality_label.grid(row=1, column=3, padx=4, pady=(0, 8), sticky="w")
        self._filename_entry = ctk.CTkEntry(self, width=160)
        self._filename_entry.insert(0, "edited-image")
        self._filename_entry.grid(row=1, column=4, columnspan=2, padx=4, pady=(0, 8), sticky="ew")
        self._export_btn = ctk.CTkButton(self, text="Экспорт…", width=96, command=self._emit_export)
        self._export_btn.grid(row=1, column=6, padx=6, pady=(0, 8), sticky="w")
        self._on_format_change("png")

        # Status
        self._status = ctk.StringVar(value="Откройте изображение, чтобы начать.")
        self._status_label = ctk.CTkLabel(self, textvariable=self._status, anchor="w")
        self._status_label.grid(row=2, column=0, columnspan=8, padx=10, pady=(0, 8), sticky="ew")

    # public API (sync from controller)
    def set_history_state(self, can_undo: bool, can_redo: bool) -> None:
        self._undo_btn.configure(state="normal" if can_undo else "disabled")
        self._redo_btn.configure(state="normal" if can_redo else "disabled")

    def set_busy(self, busy: bool) -> None:
        self._export_btn.configure(state="disabled" if busy else "normal")
        if busy:
            self.set_history_state(False, False)

    def set_status(self, text: str) -> None:
        self._status.set(text)

    def set_zoom_percent(self, percent: int) -> None:
        self._zoom_slider.set(percent)
        self._zoom_value.set(f"{percent}%")

    def get_export_options(self) -> ExportOptions:
        return ExportOptions(
            format=self._format_menu.get(),
            quality=int(round(self._quality_slider.get())),
            filename=self._filename_entry.get(),
        )

    # events
    def _emit(self, callback: Optional[Callable[[], None]]) -> None:
        if callback:
            callback()

    def _emit_export(self) -> None:
        if self.on_export:
            self.on_export(self.get_export_options())

    def _on_slider_change(self, value: float) -> None:
        percent = int(round(value))
        self._zoom_value.set(f"{percent}%")
        if self.on_zoom_change:
            self.on_zoom_change(percent)

    def _on_compare_mode(self, value: str) -> None:
        self._toggle_wipe_slider(visible=(value == "Шторка"))
        if self.on_compare_mode_change:
            self.on_compare_mode_change(value)

    def _on_wipe_slider(self, value: float) -> None:
        if self.on_wipe_change:
            self.on_wipe_change(int(round(value)))

    def _on_quality_change(self, value: float) -> None:
        self._quality_value.set(f"Качество {int(round(value))}%")

    def _on_format_change(self, value: str) -> None:
        # для PNG качество не используется
        self._quality_slider.configure(state="disabled" if value == "png" else "normal")

    # helpers
    def _toggle_wipe_slider(self, visible: bool) -> None:
        if visible:
            self._wipe_slider.grid(row=0, column=7, padx=6, pady=8, sticky="ew")
        else:
            self._wipe_slider.grid_remove()
