from photostack.core.drawing_context import ToolKind
from photostack.tools.basetool import BaseTool, StrokeResult


class SelectTool(BaseTool):
    """Rectangle selection. Reports the region; never touches pixels."""

    name = "Select"
    kind = ToolKind.SELECT
    requires_visible_layer = False

    def stroke_finished(self) -> StrokeResult:
        rect = self._rect_from_points(self.points[0], self.points[-1])
        return StrokeResult(self.kind, self.layer.uid, rect=rect)
