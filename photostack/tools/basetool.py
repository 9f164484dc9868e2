from dataclasses import dataclass
from enum import Enum, auto

from PySide6.QtCore import QObject, QPoint, QRect, Signal

from photostack.core.drawing_context import DrawingContext, ToolKind
from photostack.core.layer import Layer


class StrokeState(Enum):
    IDLE = auto()
    ACTIVE = auto()


@dataclass(frozen=True, slots=True)
class StrokeResult:
    """What a finished gesture did.

    ``pixels_changed`` is true when the tool wrote into the layer's base.
    ``rect`` carries the dragged rectangle for tools that work on regions.
    """

    kind: ToolKind
    layer_uid: int | None
    pixels_changed: bool = False
    rect: QRect | None = None


class BaseTool(QObject):
    """Abstract base class for all pointer tools.

    A gesture is ``press`` followed by any number of ``move`` calls and ends
    with ``release`` or ``leave``. Subclasses implement the ``stroke_*`` hooks;
    the base class owns the state machine and emits ``stroke_committed`` once
    per gesture.
    """

    name = None
    kind: ToolKind | None = None
    requires_visible_layer = True
    stroke_committed = Signal(object)

    def __init__(self, drawing_context: DrawingContext):
        super().__init__()
        self.drawing_context = drawing_context
        self.state = StrokeState.IDLE
        self.layer: Layer | None = None
        self.points: list[QPoint] = []

    @property
    def is_active(self) -> bool:
        return self.state is StrokeState.ACTIVE

    def press(self, layer: Layer, point: QPoint) -> bool:
        if self.is_active:
            return False
        if self.requires_visible_layer and not layer.visible:
            return False
        self.layer = layer
        self.points = [QPoint(point)]
        self.state = StrokeState.ACTIVE
        self.stroke_started(self.points[0])
        return True

    def move(self, point: QPoint) -> bool:
        if not self.is_active:
            return False
        previous = self.points[-1]
        self.points.append(QPoint(point))
        self.stroke_moved(previous, self.points[-1])
        return True

    def release(self, point: QPoint | None = None) -> StrokeResult | None:
        if not self.is_active:
            return None
        if point is not None and QPoint(point) != self.points[-1]:
            self.move(point)
        return self._finish()

    def leave(self) -> StrokeResult | None:
        """Pointer left the canvas: commit whatever the gesture produced."""
        if not self.is_active:
            return None
        return self._finish()

    def cancel(self) -> None:
        """Drop the gesture without committing it."""
        self.state = StrokeState.IDLE
        self.layer = None
        self.points = []

    def _finish(self) -> StrokeResult:
        result = self.stroke_finished()
        self.cancel()
        self.stroke_committed.emit(result)
        return result

    # Hooks ---------------------------------------------------------------
    def stroke_started(self, point: QPoint):
        pass

    def stroke_moved(self, start: QPoint, end: QPoint):
        pass

    def stroke_finished(self) -> StrokeResult:
        return StrokeResult(self.kind, self.layer.uid if self.layer else None)

    # Geometry helpers ----------------------------------------------------
    @staticmethod
    def _rect_from_points(p1: QPoint, p2: QPoint) -> QRect:
        """Return an inclusive :class:`QRect` spanning *p1* and *p2*.

        Built from the extremities rather than ``normalized()`` so the
        rectangle covers the same pixels whichever way the drag went.
        """

        left = min(p1.x(), p2.x())
        right = max(p1.x(), p2.x())
        top = min(p1.y(), p2.y())
        bottom = max(p1.y(), p2.y())
        return QRect(QPoint(left, top), QPoint(right, bottom))
