import pytest
from PySide6.QtGui import QColor

from photostack.core.document import Document
from photostack.core.pipeline import render
from photostack.core.transform import FlipAxis, TransformEngine


RED = QColor(255, 0, 0, 255)
BLUE = QColor(0, 0, 255, 255)


@pytest.fixture
def document():
    """A 100x50 document whose background has a red top-left pixel."""
    doc = Document(100, 50)
    background = doc.layer_manager.layers[0]
    background.base.fill(QColor("white"))
    background.base.setPixelColor(0, 0, RED)
    background.commit_base_edit()
    return doc


@pytest.fixture
def engine(document):
    return TransformEngine(document)


def test_rotate_swaps_dimensions(document, engine):
    assert engine.rotate(90) is True
    assert (document.width, document.height) == (50, 100)
    layer = document.layer_manager.layers[0]
    assert (layer.base.width(), layer.base.height()) == (50, 100)
    assert (layer.rendered.width(), layer.rendered.height()) == (50, 100)


def test_rotate_is_clockwise(document, engine):
    engine.rotate(90)
    base = document.layer_manager.layers[0].base
    assert base.pixelColor(49, 0) == RED
    assert base.pixelColor(0, 0) != RED


def test_four_quarter_turns_restore_the_original(document, engine):
    original = document.layer_manager.layers[0].base.copy()
    for _ in range(4):
        engine.rotate(90)
    assert (document.width, document.height) == (100, 50)
    assert document.layer_manager.layers[0].base == original


def test_negative_rotation_matches_its_positive_equivalent():
    first = Document(30, 20)
    second = Document(30, 20)
    for doc in (first, second):
        layer = doc.layer_manager.layers[0]
        layer.base.setPixelColor(3, 4, BLUE)
        layer.commit_base_edit()

    TransformEngine(first).rotate(-90)
    TransformEngine(second).rotate(270)
    assert first.layer_manager.layers[0].base == second.layer_manager.layers[0].base


def test_rotate_rejects_non_right_angles(document, engine):
    original = document.layer_manager.layers[0].base.copy()
    with pytest.raises(ValueError):
        engine.rotate(45)
    assert (document.width, document.height) == (100, 50)
    assert document.layer_manager.layers[0].base == original


def test_full_turns_are_no_ops(engine):
    assert engine.rotate(0) is False
    assert engine.rotate(360) is False
    assert engine.rotate(-720) is False


def test_rotate_applies_to_every_layer(document, engine):
    top = document.layer_manager.add_layer("Top")
    engine.rotate(180)
    for layer in document.layer_manager.layers:
        assert (layer.width, layer.height) == (100, 50)
    assert document.layer_manager.layers[0].base.pixelColor(99, 49) == RED
    assert top.base.pixelColor(0, 0).alpha() == 0


def test_transforms_refresh_generation_and_render(document, engine):
    manager = document.layer_manager
    manager.set_adjustment(0, "brightness", -50)
    layer = manager.layers[0]
    before = layer.generation

    engine.rotate(90)

    assert layer.generation > before
    assert layer.rendered == render(layer.base, layer.adjustments)
    assert layer.adjustments.brightness == -50


def test_flip_horizontal(document, engine):
    assert engine.flip(FlipAxis.HORIZONTAL) is True
    base = document.layer_manager.layers[0].base
    assert base.pixelColor(99, 0) == RED
    assert base.pixelColor(0, 0) != RED


def test_flip_vertical_accepts_strings(document, engine):
    engine.flip("vertical")
    assert document.layer_manager.layers[0].base.pixelColor(0, 49) == RED


def test_double_flip_is_identity(document, engine):
    original = document.layer_manager.layers[0].base.copy()
    engine.flip("horizontal")
    engine.flip("horizontal")
    assert document.layer_manager.layers[0].base == original


def test_flip_rejects_unknown_axis(engine):
    with pytest.raises(ValueError):
        engine.flip("diagonal")


def test_crop_inside_canvas(document, engine):
    assert engine.crop(0, 0, 40, 30) is True
    assert (document.width, document.height) == (40, 30)
    layer = document.layer_manager.layers[0]
    assert layer.base.pixelColor(0, 0) == RED
    assert (layer.rendered.width(), layer.rendered.height()) == (40, 30)


def test_crop_is_clamped_to_canvas(document, engine):
    assert engine.crop(80, 40, 100, 100) is True
    assert (document.width, document.height) == (20, 10)


def test_crop_with_negative_origin(document, engine):
    assert engine.crop(-10, -10, 30, 30) is True
    assert (document.width, document.height) == (20, 20)
    assert document.layer_manager.layers[0].base.pixelColor(0, 0) == RED


@pytest.mark.parametrize("rect", [
    (0, 0, 0, 10),
    (0, 0, 10, -5),
    (200, 0, 10, 10),
    (0, 60, 10, 10),
    (0, 0, 100, 50),
])
def test_empty_or_full_crop_is_a_no_op(document, engine, rect):
    original = document.layer_manager.layers[0].base.copy()
    assert engine.crop(*rect) is False
    assert (document.width, document.height) == (100, 50)
    assert document.layer_manager.layers[0].base == original
