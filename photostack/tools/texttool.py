from photostack.core.drawing_context import ToolKind
from photostack.tools.basetool import BaseTool


class TextTool(BaseTool):
    """Text stamping is handled outside the engine; the gesture commits
    nothing."""

    name = "Text"
    kind = ToolKind.TEXT
