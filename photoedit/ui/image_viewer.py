"""Виджет просмотра: масштаб, панорамирование и сравнение с оригиналом.

Принципы:
- SRP: отвечает только за представление изображения; историю не знает.
- Чистый код: публичный API отделён от обработчиков событий.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

COMPARE_MODES = {"Нет": "off", "Шторка": "wipe", "2-up": "side_by_side"}
_GAP = 16


class ImageViewer(ctk.CTkFrame):
    """Канва: текущее изображение, «шторка» или side-by-side с оригиналом."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._original: Optional[Image.Image] = None
        self._current: Optional[Image.Image] = None
        self._tk_left: Optional[ImageTk.PhotoImage] = None
        self._tk_right: Optional[ImageTk.PhotoImage] = None

        self._scale: float = 1.0
        self._top_left: Optional[Tuple[int, int]] = None
        self._pan_anchor: Optional[Tuple[int, int, int, int]] = None
        self._busy_text_id: Optional[int] = None

        self._compare_mode: str = "off"
        self._wipe_ratio: float = 0.5

        self.on_zoom_change: Optional[Callable[[int], None]] = None

        self._canvas.bind("<Configure>", lambda _e: self._render())
        self._canvas.bind("<MouseWheel>", self._on_mouse_wheel)
        self._canvas.bind("<Button-4>", self._on_mouse_wheel)
        self._canvas.bind("<Button-5>", self._on_mouse_wheel)
        self._canvas.bind("<ButtonPress-1>", self._on_pan_start)
        self._canvas.bind("<B1-Motion>", self._on_pan_move)
        self._canvas.bind("<ButtonRelease-1>", lambda _e: setattr(self, "_pan_anchor", None))

    # ---- Public API ----
    def set_images(self, original: Image.Image, current: Image.Image, reset_view: bool = False) -> None:
        """Оригинал (первая запись истории) и отображаемое состояние сессии."""
        size_changed = self._current is None or self._current.size != current.size
        self._original = original
        self._current = current
        if reset_view or size_changed:
            self._scale = self._fit_scale()
            self._top_left = None
        self._render()

    def set_busy(self, busy: bool) -> None:
        if self._busy_text_id is not None:
            self._canvas.delete(self._busy_text_id)
            self._busy_text_id = None
        if busy:
            self._busy_text_id = self._canvas.create_text(
                16, 16, anchor="nw", text="Обработка…", fill="#e0a000", font=("TkDefaultFont", 14, "bold")
            )
        self._canvas.update_idletasks()

    def set_zoom_to_fit(self) -> None:
        self._scale = self._fit_scale()
        self._top_left = None
        self._render()

    def set_zoom_percent(self, zoom_percent: int) -> None:
        self._scale = max(0.1, min(4.0, zoom_percent / 100.0))
        self._render()

    def get_zoom_percent(self) -> int:
        return int(round(self._scale * 100))

    def set_compare_mode(self, mode: str) -> None:
        """'Нет' | 'Шторка' | '2-up'."""
        self._compare_mode = COMPARE_MODES.get(mode, "off")
        self._top_left = None
        self._render()

    def set_wipe_percent(self, percent: int) -> None:
        self._wipe_ratio = max(0.0, min(1.0, percent / 100.0))
        if self._compare_mode == "wipe":
            self._render()

    # ---- Internals ----
    def _render(self) -> None:
        self._canvas.delete("all")
        self._busy_text_id = None
        if self._current is None:
            return

        canvas_w = int(self._canvas.winfo_width())
        canvas_h = int(self._canvas.winfo_height())
        img_w, img_h = self._current.size
        scaled = (max(1, int(img_w * self._scale)), max(1, int(img_h * self._scale)))
        after = self._current.resize(scaled, Image.Resampling.LANCZOS)
        before = None
        if self._compare_mode != "off" and self._original is not None:
            before = self._original.resize(scaled, Image.Resampling.LANCZOS)

        content_w = scaled[0] * 2 + _GAP if (before is not None and self._compare_mode == "side_by_side") else scaled[0]
        x, y = self._clamp_top_left(canvas_w, canvas_h, content_w, scaled[1])

        if before is not None and self._compare_mode == "wipe":
            split = int(round(scaled[0] * self._wipe_ratio))
            self._tk_left = ImageTk.PhotoImage(before.crop((0, 0, split, scaled[1])))
            self._tk_right = ImageTk.PhotoImage(after.crop((split, 0, scaled[0], scaled[1])))
            self._canvas.create_image(x, y, image=self._tk_left, anchor="nw")
            self._canvas.create_image(x + split, y, image=self._tk_right, anchor="nw")
        elif before is not None and self._compare_mode == "side_by_side":
            self._tk_left = ImageTk.PhotoImage(before)
            self._tk_right = ImageTk.PhotoImage(after)
            self._canvas.create_image(x, y, image=self._tk_left, anchor="nw")
            self._canvas.create_image(x + scaled[0] + _GAP, y, image=self._tk_right, anchor="nw")
        else:
            self._tk_left = ImageTk.PhotoImage(after)
            self._tk_right = None
            self._canvas.create_image(x, y, image=self._tk_left, anchor="nw")

    def _clamp_top_left(self, canvas_w: int, canvas_h: int, content_w: int, content_h: int) -> Tuple[int, int]:
        def bounds(canvas: int, content: int) -> Tuple[int, int]:
            if content <= canvas:
                centered = (canvas - content) // 2
                return centered, centered
            return canvas - content, 0

        min_x, max_x = bounds(canvas_w, content_w)
        min_y, max_y = bounds(canvas_h, content_h)
        if self._top_left is None:
            self._top_left = (max_x if content_w <= canvas_w else 0, max_y if content_h <= canvas_h else 0)
        ox, oy = self._top_left
        self._top_left = (max(min_x, min(max_x, ox)), max(min_y, min(max_y, oy)))
        return self._top_left

    def _fit_scale(self) -> float:
        if self._current is None:
            return 1.0
        canvas_w = max(1, int(self._canvas.winfo_width()))
        canvas_h = max(1, int(self._canvas.winfo_height()))
        img_w, img_h = self._current.size
        if img_w == 0 or img_h == 0:
            return 1.0
        return max(0.1, min(4.0, min(canvas_w / img_w, canvas_h / img_h)))

    def _get_canvas_bg(self) -> str:
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"

    # ---- Mouse wheel zoom ----
    def _on_mouse_wheel(self, event: tk.Event) -> None:
        if self._current is None or self._top_left is None:
            return
        # On X11, Button-4 is up, Button-5 is down
        if getattr(event, "num", None) in (4, 5):
            zoom_in = event.num == 4
        elif event.delta:
            zoom_in = event.delta > 0
        else:
            return
        factor = 1.1 if zoom_in else 1.0 / 1.1
        new_scale = max(0.1, min(4.0, self._scale * factor))
        if abs(new_scale - self._scale) < 1e-6:
            return

        # keep the point under the cursor fixed
        ox, oy = self._top_left
        ix = (event.x - ox) / self._scale
        iy = (event.y - oy) / self._scale
        self._scale = new_scale
        self._top_left = (int(round(event.x - ix * new_scale)), int(round(event.y - iy * new_scale)))
        self._render()
        if self.on_zoom_change:
            self.on_zoom_change(self.get_zoom_percent())

    # ---- Panning ----
    def _on_pan_start(self, event: tk.Event) -> None:
        if self._top_left is None:
            return
        self._pan_anchor = (event.x, event.y, *self._top_left)

    def _on_pan_move(self, event: tk.Event) -> None:
        if self._pan_anchor is None:
            return
        sx, sy, ox, oy = self._pan_anchor
        self._top_left = (ox + event.x - sx, oy + event.y - sy)
        self._render()
