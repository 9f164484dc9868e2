from photostack.core.drawing_context import ToolKind
from photostack.tools.basetool import BaseTool, StrokeResult


class ShapeTool(BaseTool):
    """Shape stamping is handled outside the engine; the gesture only
    reports the dragged bounds."""

    name = "Shape"
    kind = ToolKind.SHAPE

    def stroke_finished(self) -> StrokeResult:
        rect = self._rect_from_points(self.points[0], self.points[-1])
        return StrokeResult(self.kind, self.layer.uid, rect=rect)
