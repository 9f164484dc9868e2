from __future__ import annotations

from PySide6.QtCore import QObject, QSize, Qt, Signal
from PySide6.QtGui import QColor, QImage

from photostack.core.adjustments import AdjustmentVector
from photostack.core.pipeline import render


def blank_image(width: int, height: int) -> QImage:
    image = QImage(QSize(width, height), QImage.Format_ARGB32)
    image.fill(QColor(0, 0, 0, 0))
    return image


class Layer(QObject):
    """
    A single image plane: editable base pixels plus the adjustments that
    produce its rendered cache.
    """

    on_image_change = Signal()
    visibility_changed = Signal()
    opacity_changed = Signal(int)
    adjustments_changed = Signal()
    name_changed = Signal(str)

    _uid_counter = 0
    _generation_counter = 0

    @classmethod
    def _next_uid(cls) -> int:
        cls._uid_counter += 1
        return cls._uid_counter

    @classmethod
    def _next_generation(cls) -> int:
        cls._generation_counter += 1
        return cls._generation_counter

    def __init__(
        self,
        width: int,
        height: int,
        name: str,
        *,
        base: QImage | None = None,
        adjustments: AdjustmentVector | None = None,
        rendered: QImage | None = None,
    ):
        super().__init__()
        if not isinstance(name, str) or not name:
            raise ValueError("Layer name must be a non-empty string.")

        self._name = name
        self._visible = True
        self._opacity = 100
        if base is None:
            base = blank_image(width, height)
        elif base.format() != QImage.Format_ARGB32:
            base = base.convertToFormat(QImage.Format_ARGB32)
        self._base = base
        self._adjustments = adjustments or AdjustmentVector()
        if rendered is None:
            rendered = render(self._base, self._adjustments)
        self._rendered = rendered

        self.uid = self._next_uid()
        self.generation = self._next_generation()

    @property
    def name(self):
        return self._name

    @name.setter
    def name(self, value):
        if self._name != value:
            if not isinstance(value, str) or not value:
                raise ValueError("Layer name must be a non-empty string.")
            self._name = value
            self.name_changed.emit(self._name)

    @property
    def visible(self):
        return self._visible

    @visible.setter
    def visible(self, value):
        value = bool(value)
        if self._visible != value:
            self._visible = value
            self.visibility_changed.emit()

    @property
    def opacity(self) -> int:
        """Opacity in percent, 0 (transparent) to 100 (opaque)."""
        return self._opacity

    @opacity.setter
    def opacity(self, value) -> None:
        value = max(0, min(100, int(round(float(value)))))
        if self._opacity != value:
            self._opacity = value
            self.opacity_changed.emit(self._opacity)

    @property
    def width(self) -> int:
        return self._base.width()

    @property
    def height(self) -> int:
        return self._base.height()

    # ------------------------------------------------------------------
    # Pixel state
    # ------------------------------------------------------------------
    @property
    def base(self) -> QImage:
        """The editable source pixels. Painting into it directly must be
        followed by :meth:`commit_base_edit`."""
        return self._base

    @property
    def rendered(self) -> QImage:
        return self._rendered

    @property
    def adjustments(self) -> AdjustmentVector:
        return self._adjustments

    @adjustments.setter
    def adjustments(self, value: AdjustmentVector) -> None:
        if not isinstance(value, AdjustmentVector):
            raise TypeError("adjustments must be an AdjustmentVector")
        if value == self._adjustments:
            return
        self._adjustments = value
        self.refresh()
        self.adjustments_changed.emit()

    def set_base(self, image: QImage) -> None:
        """Replace the base pixels and re-render."""
        if image.format() != QImage.Format_ARGB32:
            image = image.convertToFormat(QImage.Format_ARGB32)
        self._base = image
        self.commit_base_edit()

    def commit_base_edit(self) -> None:
        self.generation = self._next_generation()
        self.refresh()

    def refresh(self) -> None:
        self._rendered = render(self._base, self._adjustments)
        self.on_image_change.emit()

    def flip_horizontal(self):
        self.set_base(self._base.flipped(Qt.Horizontal))

    def flip_vertical(self):
        self.set_base(self._base.flipped(Qt.Vertical))

    @classmethod
    def from_qimage(cls, qimage: QImage, name: str) -> "Layer":
        """Creates a new layer whose base is a copy of *qimage*."""
        return cls(qimage.width(), qimage.height(), name, base=qimage.copy())
