from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from PySide6.QtCore import QRect
from PySide6.QtGui import QTransform

if TYPE_CHECKING:
    from photostack.core.document import Document


logger = logging.getLogger(__name__)


class FlipAxis(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class TransformEngine:
    """Geometry operations applied uniformly to every layer's base.

    Each operation transforms all layers before returning, re-renders them,
    and verifies that every buffer matches the new canvas size. Methods
    return ``False`` when the request was a no-op.
    """

    def __init__(self, document: "Document"):
        self.document = document

    def rotate(self, degrees: int) -> bool:
        """Rotate clockwise by a multiple of 90 degrees."""
        if isinstance(degrees, bool) or int(degrees) != degrees or int(degrees) % 90 != 0:
            raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees!r}.")
        turn = int(degrees) % 360
        if turn == 0:
            return False

        document = self.document
        width, height = document.width, document.height
        if turn in (90, 270):
            width, height = height, width

        transform = QTransform().rotate(turn)
        for layer in document.layer_manager.layers:
            layer.set_base(layer.base.transformed(transform))

        document.set_canvas_size(width, height)
        document.check_dimensions()
        logger.debug("Rotated canvas by %d degrees to %dx%d", turn, width, height)
        return True

    def flip(self, axis: FlipAxis | str) -> bool:
        axis = FlipAxis(axis)
        for layer in self.document.layer_manager.layers:
            if axis is FlipAxis.HORIZONTAL:
                layer.flip_horizontal()
            else:
                layer.flip_vertical()
        self.document.check_dimensions()
        return True

    def crop(self, x: int, y: int, width: int, height: int) -> bool:
        """Crop every layer to the part of the rectangle inside the canvas."""
        if width <= 0 or height <= 0:
            return False

        document = self.document
        canvas = QRect(0, 0, document.width, document.height)
        rect = QRect(int(x), int(y), int(width), int(height)).intersected(canvas)
        if rect.isEmpty():
            return False
        if rect == canvas:
            return False

        for layer in document.layer_manager.layers:
            layer.set_base(layer.base.copy(rect))

        document.set_canvas_size(rect.width(), rect.height())
        document.check_dimensions()
        logger.debug("Cropped canvas to %dx%d at (%d, %d)", rect.width(), rect.height(), rect.x(), rect.y())
        return True
