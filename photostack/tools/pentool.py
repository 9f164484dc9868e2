from PySide6.QtCore import QPoint, Qt
from PySide6.QtGui import QPainter, QPen

from photostack.core.drawing_context import ToolKind
from photostack.tools.basetool import BaseTool, StrokeResult


class PenTool(BaseTool):
    """Freehand brush painting straight into the active layer's base.

    While the gesture is active the rendered cache is only refreshed for
    layers without adjustments, where rendering is a plain copy. Adjusted
    layers are re-rendered once, when the stroke is committed.
    """

    name = "Brush"
    kind = ToolKind.BRUSH

    def __init__(self, drawing_context):
        super().__init__(drawing_context)
        self._render_pending = False

    def _pen(self) -> QPen:
        context = self.drawing_context
        return QPen(context.pen_color, context.pen_width, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin)

    def _prepare(self, painter: QPainter):
        painter.setRenderHint(QPainter.Antialiasing, False)
        painter.setPen(self._pen())

    def stroke_started(self, point: QPoint):
        self._paint(lambda painter: painter.drawPoint(point))

    def stroke_moved(self, start: QPoint, end: QPoint):
        self._paint(lambda painter: painter.drawLine(start, end))

    def _paint(self, draw):
        layer = self.layer
        painter = QPainter(layer.base)
        try:
            self._prepare(painter)
            draw(painter)
        finally:
            painter.end()
        if layer.adjustments.is_identity():
            layer.refresh()
        else:
            self._render_pending = True

    def stroke_finished(self) -> StrokeResult:
        # The commit re-renders the layer.
        self._render_pending = False
        return StrokeResult(self.kind, self.layer.uid, pixels_changed=True)

    def cancel(self) -> None:
        if self._render_pending and self.layer is not None:
            self.layer.refresh()
        self._render_pending = False
        super().cancel()
