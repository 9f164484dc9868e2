from PySide6.QtCore import Qt
from PySide6.QtGui import QPainter, QPen

from photostack.core.drawing_context import ToolKind
from photostack.tools.pentool import PenTool


class EraserTool(PenTool):
    """Clears base pixels to transparent along the stroke."""

    name = "Eraser"
    kind = ToolKind.ERASER

    def _pen(self) -> QPen:
        width = self.drawing_context.eraser_width
        return QPen(Qt.black, width, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin)

    def _prepare(self, painter: QPainter):
        super()._prepare(painter)
        painter.setCompositionMode(QPainter.CompositionMode_Clear)
