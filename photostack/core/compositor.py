from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QImage, QPainter

if TYPE_CHECKING:
    from photostack.core.layer_manager import LayerManager


def flatten(layer_manager: "LayerManager") -> QImage:
    """Composite the visible layers bottom to top into a new image.

    Each layer's rendered buffer is drawn source-over with its opacity as a
    global alpha. Hidden layers do not take part at all.
    """

    final_image = QImage(
        QSize(max(1, int(layer_manager.width)), max(1, int(layer_manager.height))),
        QImage.Format_ARGB32,
    )
    final_image.fill(Qt.transparent)

    painter = QPainter(final_image)
    try:
        painter.setCompositionMode(QPainter.CompositionMode_SourceOver)
        for layer in layer_manager.layers:
            if not layer.visible:
                continue
            painter.setOpacity(layer.opacity / 100.0)
            painter.drawImage(0, 0, layer.rendered)
    finally:
        painter.end()
    return final_image
