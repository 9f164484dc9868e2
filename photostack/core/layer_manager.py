from __future__ import annotations

import logging

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage, QPainter

from photostack.core.adjustments import AdjustmentVector
from photostack.core.errors import InvalidLayerIndex, LastLayerRejected
from photostack.core.layer import Layer


logger = logging.getLogger(__name__)


class LayerManager(QObject):
    """
    Manages the ordered stack of layers in a document.

    Index 0 is the bottom of the stack. Mutating methods return ``True`` when
    they changed state so the caller can decide whether to record history;
    the manager never records history itself.
    """
    layer_visibility_changed = Signal(int)
    layer_image_changed = Signal(int)
    layer_structure_changed = Signal()

    def __init__(self, width: int, height: int, create_background: bool = True):
        super().__init__()
        self.width = width
        self.height = height
        self.layers: list[Layer] = []
        self.active_layer_index = -1

        if create_background:
            self.add_layer("Background")

    @property
    def active_layer(self) -> Layer | None:
        """Returns the currently active layer."""
        if 0 <= self.active_layer_index < len(self.layers):
            return self.layers[self.active_layer_index]
        return None

    def __len__(self) -> int:
        return len(self.layers)

    # ------------------------------------------------------------------
    # Layer lookup helpers
    # ------------------------------------------------------------------
    def layer_at(self, index: int) -> Layer:
        """Return the layer at ``index`` or raise :class:`InvalidLayerIndex`."""

        if not isinstance(index, int) or not (0 <= index < len(self.layers)):
            raise InvalidLayerIndex(index, len(self.layers))
        return self.layers[index]

    def index_for_layer_uid(self, layer_uid: int | None) -> int | None:
        """Return the index of the layer with ``layer_uid`` if it exists."""

        if layer_uid is None:
            return None

        for index, layer in enumerate(self.layers):
            if layer.uid == layer_uid:
                return index

        return None

    def find_layer_by_uid(self, layer_uid: int | None) -> Layer | None:
        """Return the layer identified by ``layer_uid`` if present."""

        index = self.index_for_layer_uid(layer_uid)
        if index is None:
            return None
        return self.layers[index]

    def _next_layer_name(self) -> str:
        taken = {layer.name for layer in self.layers}
        number = len(self.layers) + 1
        while f"Layer {number}" in taken:
            number += 1
        return f"Layer {number}"

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def _append(self, layer: Layer, index: int | None = None) -> None:
        layer.on_image_change.connect(self._emit_image_changed_for(layer))
        if index is None:
            self.layers.append(layer)
            index = len(self.layers) - 1
        else:
            self.layers.insert(index, layer)
        self.active_layer_index = index
        self.layer_structure_changed.emit()

    def _emit_image_changed_for(self, layer: Layer):
        def emit():
            index = self.index_for_layer_uid(layer.uid)
            if index is not None and self.layers[index] is layer:
                self.layer_image_changed.emit(index)

        return emit

    def add_layer(self, name: str | None = None) -> Layer:
        """Adds a new transparent layer to the top of the stack."""
        new_layer = Layer(self.width, self.height, name or self._next_layer_name())
        self._append(new_layer)
        return new_layer

    def add_layer_with_image(self, image: QImage, name: str = "Image Layer") -> Layer:
        """Adds a layer whose base is *image* drawn at the canvas origin."""
        new_layer = Layer(self.width, self.height, name)
        base = new_layer.base.copy()

        painter = QPainter(base)
        painter.drawImage(0, 0, image)
        painter.end()
        new_layer.set_base(base)
        self._append(new_layer)
        return new_layer

    def duplicate_layer(self, index: int) -> Layer:
        """Insert a copy of the layer at ``index`` directly above it.

        The copy's base is the source's rendered output, so its adjustments
        start at identity rather than applying them twice.
        """
        source = self.layer_at(index)
        copy = Layer(
            self.width,
            self.height,
            f"{source.name} copy",
            base=source.rendered.copy(),
        )
        copy.visible = source.visible
        copy.opacity = source.opacity
        self._append(copy, index + 1)
        return copy

    def remove_layer(self, index: int) -> Layer:
        """Removes the layer at the given index."""
        if len(self.layers) == 1:
            raise LastLayerRejected()
        self.layer_at(index)

        layer = self.layers.pop(index)
        self.active_layer_index = max(0, index - 1)
        self.layer_structure_changed.emit()
        return layer

    def select_layer(self, index: int) -> bool:
        """Selects the layer at the given index as the active one."""
        self.layer_at(index)
        if self.active_layer_index == index:
            return False
        self.active_layer_index = index
        return True

    def move_layer_up(self, index: int) -> bool:
        """Moves the layer at the given index up one step in the stack."""
        self.layer_at(index)
        if index == len(self.layers) - 1:
            return False  # already on top

        self.layers[index], self.layers[index + 1] = self.layers[index + 1], self.layers[index]

        if self.active_layer_index == index:
            self.active_layer_index += 1
        elif self.active_layer_index == index + 1:
            self.active_layer_index -= 1
        self.layer_structure_changed.emit()
        return True

    def move_layer_down(self, index: int) -> bool:
        """Moves the layer at the given index down one step in the stack."""
        self.layer_at(index)
        if index == 0:
            return False  # already at the bottom

        self.layers[index], self.layers[index - 1] = self.layers[index - 1], self.layers[index]

        if self.active_layer_index == index:
            self.active_layer_index -= 1
        elif self.active_layer_index == index - 1:
            self.active_layer_index += 1
        self.layer_structure_changed.emit()
        return True

    def replace_layers(self, layers: list[Layer], active_layer_index: int) -> None:
        """Swap in a whole new stack, e.g. when restoring history."""
        if not layers:
            raise ValueError("A layer stack needs at least one layer.")
        if not (0 <= active_layer_index < len(layers)):
            raise InvalidLayerIndex(active_layer_index, len(layers))
        self.layers = []
        for layer in layers:
            layer.on_image_change.connect(self._emit_image_changed_for(layer))
            self.layers.append(layer)
        self.active_layer_index = active_layer_index
        self.layer_structure_changed.emit()

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def set_visibility(self, index: int, visible: bool) -> bool:
        layer = self.layer_at(index)
        if layer.visible == bool(visible):
            return False
        layer.visible = visible
        self.layer_visibility_changed.emit(index)
        return True

    def toggle_visibility(self, index: int) -> bool:
        """Toggles the visibility of the layer at the given index."""
        layer = self.layer_at(index)
        return self.set_visibility(index, not layer.visible)

    def set_opacity(self, index: int, value) -> bool:
        layer = self.layer_at(index)
        previous = layer.opacity
        layer.opacity = value
        return layer.opacity != previous

    def rename_layer(self, index: int, name: str) -> bool:
        layer = self.layer_at(index)
        if layer.name == name:
            return False
        layer.name = name
        return True

    # ------------------------------------------------------------------
    # Adjustments
    # ------------------------------------------------------------------
    def set_adjustment(self, index: int, field: str, value) -> bool:
        layer = self.layer_at(index)
        updated = layer.adjustments.with_value(field, value)
        if updated == layer.adjustments:
            return False
        layer.adjustments = updated
        return True

    def set_adjustments(self, index: int, adjustments: AdjustmentVector) -> bool:
        layer = self.layer_at(index)
        if layer.adjustments == adjustments:
            return False
        layer.adjustments = adjustments
        return True

    def apply_preset(self, index: int, name: str) -> bool:
        """Replace the layer's adjustments with preset *name*."""
        adjustments = AdjustmentVector.from_preset(name)
        logger.debug("Applying preset %r to layer %d", name, index)
        return self.set_adjustments(index, adjustments)

    def reset_adjustments(self, index: int) -> bool:
        return self.set_adjustments(index, AdjustmentVector())

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------
    def mismatched_layers(self) -> list[int]:
        """Indices of layers whose buffers differ from the canvas size."""
        mismatched = []
        for index, layer in enumerate(self.layers):
            for image in (layer.base, layer.rendered):
                if image.width() != self.width or image.height() != self.height:
                    mismatched.append(index)
                    break
        return mismatched
