from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtGui import QImage

from photostack.core.compositor import flatten
from photostack.core.errors import LayerDimensionMismatch
from photostack.core.layer import Layer
from photostack.core.layer_manager import LayerManager

if TYPE_CHECKING:
    from photostack.core.undo import HistorySnapshot


class Document:
    """The editor state: canvas size plus the layer stack that fills it."""

    def __init__(self, width: int, height: int, *, create_background: bool = True) -> None:
        if width < 1 or height < 1:
            raise ValueError("Document dimensions must be positive.")
        self.layer_manager = LayerManager(width, height, create_background=create_background)
        self.file_path: str | None = None

    @property
    def width(self) -> int:
        return self.layer_manager.width

    @property
    def height(self) -> int:
        return self.layer_manager.height

    @classmethod
    def from_image(cls, image: QImage, name: str = "Background") -> "Document":
        """Create a single-layer document sized to *image*."""
        document = cls(image.width(), image.height(), create_background=False)
        layer = Layer.from_qimage(image, name)
        document.layer_manager.replace_layers([layer], 0)
        return document

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def set_canvas_size(self, width: int, height: int) -> None:
        self.layer_manager.width = width
        self.layer_manager.height = height

    def check_dimensions(self) -> None:
        mismatched = self.layer_manager.mismatched_layers()
        if mismatched:
            raise LayerDimensionMismatch(
                f"Layers {mismatched} do not match the {self.width}x{self.height} canvas."
            )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def restore_snapshot(self, snapshot: "HistorySnapshot") -> None:
        """Replace the whole stack with fresh layers built from *snapshot*."""
        layers = [layer_snapshot.restore() for layer_snapshot in snapshot.layers]
        self.layer_manager.width = snapshot.width
        self.layer_manager.height = snapshot.height
        self.layer_manager.replace_layers(layers, snapshot.active_layer_index)

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------
    def render(self) -> QImage:
        """Composite visible layers into one canvas-sized image."""
        return flatten(self.layer_manager)

