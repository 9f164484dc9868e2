import pytest
from PIL import Image

from photostack.core.errors import DecodeFailure


def test_open_image_sets_file_path(controller, png_bytes, tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes(12, 9))

    controller.document_service.open_image(path)

    assert (controller.document.width, controller.document.height) == (12, 9)
    assert controller.document.file_path == str(path)


def test_open_missing_file_raises(controller, tmp_path):
    with pytest.raises(OSError):
        controller.document_service.open_image(tmp_path / "missing.png")


def test_open_non_image_raises(controller, tmp_path):
    path = tmp_path / "notes.png"
    path.write_text("not pixels")
    with pytest.raises(DecodeFailure):
        controller.document_service.open_image(path)


@pytest.mark.parametrize("name, expected_format", [
    ("out.png", "PNG"),
    ("out.jpg", "JPEG"),
    ("out.jpeg", "JPEG"),
    ("out.bmp", "BMP"),
    ("out.webp", "WEBP"),
    ("out.tiff", "TIFF"),
])
def test_save_image_by_extension(controller, png_bytes, tmp_path, name, expected_format):
    controller.upload_image_sync(png_bytes(6, 4))
    written = controller.document_service.save_image(tmp_path / name)
    with Image.open(written) as image:
        assert image.format == expected_format
        assert image.size == (6, 4)


def test_save_without_extension_defaults_to_png(controller, tmp_path):
    written = controller.document_service.save_image(tmp_path / "untitled")
    assert written.endswith("untitled.png")
    assert controller.document.file_path == written
    with Image.open(written) as image:
        assert image.format == "PNG"


def test_save_unsupported_extension(controller, tmp_path):
    with pytest.raises(ValueError):
        controller.document_service.save_image(tmp_path / "out.gif")
    assert not (tmp_path / "out.gif").exists()
