from enum import Enum

from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtGui import QColor


class ToolKind(Enum):
    BRUSH = "Brush"
    ERASER = "Eraser"
    SHAPE = "Shape"
    TEXT = "Text"
    CROP = "Crop"
    SELECT = "Select"


class ShapeType(Enum):
    RECTANGLE = "Rectangle"
    ELLIPSE = "Ellipse"
    LINE = "Line"


class DrawingContext(QObject):
    tool_changed = Signal(object)
    pen_color_changed = Signal(QColor)
    pen_width_changed = Signal(int)
    eraser_width_changed = Signal(int)
    shape_type_changed = Signal(object)
    text_changed = Signal(str)

    def __init__(self):
        super().__init__()
        self.tool = ToolKind.BRUSH
        self.previous_tool = ToolKind.BRUSH
        self.pen_color = QColor("black")
        self.pen_width = 5
        self.eraser_width = 20
        self.shape_type = ShapeType.RECTANGLE
        self.text = ""

    @Slot(object)
    def set_tool(self, tool):
        tool = ToolKind(tool)
        if tool is self.tool:
            return
        self.previous_tool = self.tool
        self.tool = tool
        self.tool_changed.emit(self.tool)

    @Slot(QColor)
    def set_pen_color(self, color):
        # This slot can accept a string or a QColor
        if isinstance(color, str):
            self.pen_color = QColor(color)
        else:
            self.pen_color = color
        self.pen_color_changed.emit(self.pen_color)

    @Slot(int)
    def set_pen_width(self, width):
        self.pen_width = max(1, int(width))
        self.pen_width_changed.emit(self.pen_width)

    @Slot(int)
    def set_eraser_width(self, width):
        self.eraser_width = max(1, int(width))
        self.eraser_width_changed.emit(self.eraser_width)

    @Slot(object)
    def set_shape_type(self, shape_type):
        self.shape_type = ShapeType(shape_type)
        self.shape_type_changed.emit(self.shape_type)

    @Slot(str)
    def set_text(self, text):
        self.text = str(text)
        self.text_changed.emit(self.text)
