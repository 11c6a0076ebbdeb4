from __future__ import annotations

from typing import List, Optional

from photoedit.errors import NoOpError
from photoedit.models.image_model import EncodedImage


class EditHistory:
    """
    Линейная история снимков (Undo/Redo).
    Новый снимок после отмены отбрасывает ветку повтора.
    Пустая история: index == -1.
    """

    def __init__(self) -> None:
        self._entries: List[EncodedImage] = []
        self._index: int = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> List[EncodedImage]:
        return list(self._entries)

    @property
    def current(self) -> Optional[EncodedImage]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def push(self, image: EncodedImage) -> None:
        del self._entries[self._index + 1:]
        self._entries.append(image)
        self._index = len(self._entries) - 1

    def undo(self) -> EncodedImage:
        if not self.can_undo():
            raise NoOpError("Нечего отменять")
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> EncodedImage:
        if not self.can_redo():
            raise NoOpError("Нечего повторять")
        self._index += 1
        return self._entries[self._index]

    def reset(self, image: EncodedImage) -> None:
        self._entries = [image]
        self._index = 0
