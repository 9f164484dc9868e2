"""Crop by dragging a rectangle over the canvas."""

from photostack.core.drawing_context import ToolKind
from photostack.tools.basetool import BaseTool, StrokeResult


class CropTool(BaseTool):
    name = "Crop"
    kind = ToolKind.CROP
    requires_visible_layer = False

    def stroke_finished(self) -> StrokeResult:
        rect = self._rect_from_points(self.points[0], self.points[-1])
        return StrokeResult(self.kind, self.layer.uid, rect=rect)
