from PySide6.QtGui import QColor, QImage

from photostack.core.compositor import flatten
from photostack.core.document import Document


def _stack(*colors):
    """Document with one opaque layer per color, bottom first."""
    doc = Document(8, 8, create_background=False)
    manager = doc.layer_manager
    for index, color in enumerate(colors):
        layer = manager.add_layer(f"Layer {index}")
        layer.base.fill(QColor(color))
        layer.commit_base_edit()
    return doc


def test_half_opacity_blend():
    """Blue at 50% over red gives an even source-over mix."""
    doc = _stack("red", "blue")
    doc.layer_manager.set_opacity(1, 50)

    pixel = flatten(doc.layer_manager).pixelColor(4, 4)

    assert abs(pixel.red() - 128) <= 2
    assert pixel.green() == 0
    assert abs(pixel.blue() - 128) <= 2
    assert pixel.alpha() == 255


def test_opaque_top_layer_wins():
    doc = _stack("red", "blue")
    assert flatten(doc.layer_manager).pixelColor(0, 0) == QColor("blue")


def test_hidden_layers_are_skipped():
    doc = _stack("red", "blue")
    doc.layer_manager.set_visibility(1, False)
    assert flatten(doc.layer_manager).pixelColor(0, 0) == QColor("red")


def test_transparent_stack_flattens_to_transparent():
    doc = Document(5, 3)
    image = doc.render()
    assert image.format() == QImage.Format_ARGB32
    assert (image.width(), image.height()) == (5, 3)
    assert image.pixelColor(2, 1).alpha() == 0


def test_flatten_uses_rendered_buffers():
    doc = _stack(QColor(100, 100, 100))
    doc.layer_manager.set_adjustment(0, "brightness", 50)
    assert doc.render().pixelColor(0, 0) == QColor(150, 150, 150)
