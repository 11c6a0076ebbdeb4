import pytest

from photoedit.errors import NoOpError
from photoedit.models.image_model import EncodedImage
from photoedit.services.history_service import EditHistory


def entry(name: str) -> EncodedImage:
    return EncodedImage(data_base64=name, mime_type="image/png", width=1, height=1)


A, B, C, D = (entry(n) for n in "ABCD")


@pytest.fixture
def history() -> EditHistory:
    h = EditHistory()
    h.reset(A)
    h.push(B)
    h.push(C)
    return h


class TestEditHistory:
    def test_initially_empty(self):
        h = EditHistory()
        assert h.index == -1
        assert len(h) == 0
        assert h.current is None

    def test_undo_on_empty_history(self):
        h = EditHistory()
        with pytest.raises(NoOpError):
            h.undo()
        assert h.index == -1

    def test_undo_on_single_entry(self):
        h = EditHistory()
        h.reset(A)
        with pytest.raises(NoOpError):
            h.undo()
        assert h.index == 0
        assert h.current is A

    def test_redo_at_end(self, history):
        with pytest.raises(NoOpError):
            history.redo()
        assert history.index == 2

    def test_undo_redo(self, history):
        assert history.undo() is B
        assert history.undo() is A
        assert not history.can_undo()
        assert history.redo() is B
        assert history.index == 1

    def test_push_after_undo_discards_redo_branch(self, history):
        assert history.undo() is B
        history.push(D)
        assert history.entries == [A, B, D]
        assert history.index == 2
        with pytest.raises(NoOpError):
            history.redo()

    def test_reset_clears(self, history):
        history.reset(D)
        assert history.entries == [D]
        assert history.index == 0
        assert not history.can_undo()
        assert not history.can_redo()

    def test_entries_is_a_copy(self, history):
        history.entries.append(D)
        assert len(history) == 3
