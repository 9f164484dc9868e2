from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from photostack.core.adjustments import AdjustmentVector
from photostack.core.layer import Layer

if TYPE_CHECKING:
    from photostack.core.document import Document


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 10


@dataclass(frozen=True, slots=True)
class LayerSnapshot:
    uid: int
    name: str
    opacity: int
    visible: bool
    adjustments: AdjustmentVector
    base: QImage
    rendered: QImage

    @classmethod
    def capture(cls, layer: Layer) -> "LayerSnapshot":
        return cls(
            uid=layer.uid,
            name=layer.name,
            opacity=layer.opacity,
            visible=layer.visible,
            adjustments=layer.adjustments,
            base=layer.base.copy(),
            rendered=layer.rendered.copy(),
        )

    def restore(self) -> Layer:
        """Build a fresh layer that owns copies of the stored buffers."""
        layer = Layer(
            self.base.width(),
            self.base.height(),
            self.name,
            base=self.base.copy(),
            adjustments=self.adjustments,
            rendered=self.rendered.copy(),
        )
        layer.uid = self.uid
        layer.visible = self.visible
        layer.opacity = self.opacity
        return layer


@dataclass(frozen=True, slots=True)
class HistorySnapshot:
    layers: tuple[LayerSnapshot, ...]
    active_layer_index: int
    width: int
    height: int

    @classmethod
    def capture(cls, document: "Document") -> "HistorySnapshot":
        manager = document.layer_manager
        return cls(
            layers=tuple(LayerSnapshot.capture(layer) for layer in manager.layers),
            active_layer_index=manager.active_layer_index,
            width=document.width,
            height=document.height,
        )


class HistoryManager(QObject):
    """
    Bounded list of document snapshots with an undo/redo cursor.

    The cursor always addresses the snapshot matching the live document.
    Saving after an undo discards the redo branch; exceeding the capacity
    evicts the oldest snapshot.
    """

    history_changed = Signal()

    def __init__(self, document: "Document", capacity: int = DEFAULT_HISTORY_CAPACITY):
        super().__init__()
        if capacity < 1:
            raise ValueError("History capacity must be at least 1.")
        self.document = document
        self._capacity = int(capacity)
        self._snapshots: list[HistorySnapshot] = []
        self._cursor = -1

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> tuple[HistorySnapshot, ...]:
        return tuple(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._snapshots) - 1

    def clear(self) -> None:
        self._snapshots.clear()
        self._cursor = -1
        self.history_changed.emit()

    def save_state(self) -> HistorySnapshot:
        """Record the current document as the newest snapshot."""
        del self._snapshots[self._cursor + 1:]
        snapshot = HistorySnapshot.capture(self.document)
        self._snapshots.append(snapshot)
        self._cursor = len(self._snapshots) - 1
        if len(self._snapshots) > self._capacity:
            self._snapshots.pop(0)
            self._cursor -= 1
        logger.debug("Saved history step %d of %d", self._cursor, len(self._snapshots))
        self.history_changed.emit()
        return snapshot

    def undo(self) -> bool:
        """Step back one snapshot. Returns ``False`` at the oldest snapshot."""
        if not self.can_undo():
            return False
        self._cursor -= 1
        self._restore(self._snapshots[self._cursor])
        return True

    def redo(self) -> bool:
        """Step forward one snapshot. Returns ``False`` at the newest snapshot."""
        if not self.can_redo():
            return False
        self._cursor += 1
        self._restore(self._snapshots[self._cursor])
        return True

    def _restore(self, snapshot: HistorySnapshot) -> None:
        self.document.restore_snapshot(snapshot)
        logger.debug("Restored history step %d", self._cursor)
        self.history_changed.emit()
