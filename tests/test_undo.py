import pytest
from PySide6.QtGui import QColor

from photostack.core.document import Document
from photostack.core.undo import HistoryManager


@pytest.fixture
def document():
    return Document(16, 16)


def test_capacity_must_be_positive(document):
    with pytest.raises(ValueError):
        HistoryManager(document, 0)


def test_undo_redo_restore_snapshots(document):
    history = HistoryManager(document)
    history.save_state()

    document.layer_manager.set_adjustment(0, "brightness", 50)
    history.save_state()

    assert history.undo() is True
    assert document.layer_manager.layers[0].adjustments.brightness == 0
    assert history.redo() is True
    assert document.layer_manager.layers[0].adjustments.brightness == 50


def test_boundaries_are_silent(document):
    history = HistoryManager(document)
    history.save_state()
    assert history.undo() is False
    assert history.redo() is False
    assert history.cursor == 0


def test_oldest_snapshot_is_evicted(document):
    history = HistoryManager(document, capacity=3)
    for opacity in (10, 20, 30, 40, 50):
        document.layer_manager.set_opacity(0, opacity)
        history.save_state()

    assert len(history) == 3
    assert history.cursor == 2
    while history.undo():
        pass
    assert document.layer_manager.layers[0].opacity == 30


def test_new_state_truncates_redo_branch(document):
    history = HistoryManager(document)
    history.save_state()
    document.layer_manager.add_layer()
    history.save_state()
    document.layer_manager.add_layer()
    history.save_state()

    history.undo()
    history.undo()
    assert history.can_redo()

    document.layer_manager.set_opacity(0, 10)
    history.save_state()

    assert not history.can_redo()
    assert len(history) == 2
    history.undo()
    assert len(document.layer_manager) == 1


def test_restore_preserves_uids_with_fresh_generations(document):
    history = HistoryManager(document)
    layer = document.layer_manager.layers[0]
    uid, generation = layer.uid, layer.generation
    history.save_state()
    document.layer_manager.set_opacity(0, 10)
    history.save_state()

    history.undo()

    restored = document.layer_manager.layers[0]
    assert restored is not layer
    assert restored.uid == uid
    assert restored.generation > generation


def test_snapshots_are_isolated_from_live_edits(document):
    """Painting after an undo must not leak into the stored snapshot."""
    history = HistoryManager(document)
    history.save_state()
    document.layer_manager.add_layer()
    history.save_state()
    history.undo()

    live = document.layer_manager.layers[0]
    live.base.fill(QColor("green"))
    live.commit_base_edit()

    history.redo()
    history.undo()
    assert document.layer_manager.layers[0].base.pixelColor(0, 0).alpha() == 0


def test_restore_brings_back_canvas_size(document):
    history = HistoryManager(document)
    history.save_state()
    document.set_canvas_size(8, 8)
    for layer in document.layer_manager.layers:
        layer.set_base(layer.base.copy(0, 0, 8, 8))
    history.save_state()

    history.undo()
    assert (document.width, document.height) == (16, 16)
    assert document.layer_manager.mismatched_layers() == []


def test_history_changed_signal(document, qtbot):
    history = HistoryManager(document)
    with qtbot.waitSignal(history.history_changed, timeout=1000):
        history.save_state()
    with qtbot.waitSignal(history.history_changed, timeout=1000):
        history.clear()
    assert len(history) == 0
    assert history.cursor == -1
