import io
import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from photostack.core.document_controller import DocumentController
from photostack.core.settings_controller import SettingsController


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """
    One QApplication shared by the whole run; QPainter and QThread need it.
    """
    # Use sys.argv to avoid issues on some platforms.
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app
    app.quit()


@pytest.fixture
def solid_image():
    """Factory for opaque (or translucent) single-color ARGB32 images."""
    def make(width, height, color="red"):
        image = QImage(width, height, QImage.Format_ARGB32)
        image.fill(QColor(color))
        return image
    return make


@pytest.fixture
def png_bytes():
    """Factory for encoded PNG data of a given size and RGBA color."""
    def make(width, height, color=(255, 0, 0, 255)):
        buffer = io.BytesIO()
        Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()
    return make


@pytest.fixture
def settings(tmp_path):
    return SettingsController(str(tmp_path / "settings.ini"))


@pytest.fixture
def controller(settings):
    controller = DocumentController(settings)
    yield controller
    controller.shutdown()
