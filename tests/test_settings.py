import configparser

from photostack.core.document_controller import DocumentController
from photostack.core.settings_controller import SettingsController


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_defaults_without_a_file(tmp_path):
    settings = SettingsController(str(tmp_path / "missing.ini"))
    assert settings.history_capacity == 10
    assert settings.get_canvas_settings() == {"default_width": 640, "default_height": 480}
    assert settings.get_export_settings() == {"format": "PNG", "jpeg_quality": 90}


def test_values_are_read_from_file(tmp_path):
    path = _write(tmp_path / "settings.ini", """
[History]
capacity = 4

[Canvas]
default_width = 320
default_height = 200

[Export]
format = jpg
jpeg_quality = 75
""")
    settings = SettingsController(path)
    assert settings.history_capacity == 4
    assert (settings.canvas_default_width, settings.canvas_default_height) == (320, 200)
    assert settings.export_format == "JPEG"
    assert settings.export_jpeg_quality == 75


def test_invalid_values_fall_back(tmp_path):
    path = _write(tmp_path / "settings.ini", """
[History]
capacity = lots

[Canvas]
default_width = 0
default_height = -3

[Export]
format = gif
jpeg_quality = 500
""")
    settings = SettingsController(path)
    assert settings.history_capacity == 10
    assert (settings.canvas_default_width, settings.canvas_default_height) == (640, 480)
    assert settings.export_format == "PNG"
    assert settings.export_jpeg_quality == 100
    # Parsed values are written back into the parser.
    assert settings.config.get("History", "capacity") == "10"


def test_save_settings_round_trip(tmp_path):
    path = str(tmp_path / "settings.ini")
    settings = SettingsController(path)
    settings.history_capacity = 25
    settings.export_format = "WEBP"
    assert settings.save_settings() is True

    parser = configparser.ConfigParser()
    parser.read(path)
    assert parser.getint("History", "capacity") == 25
    assert SettingsController(path).export_format == "WEBP"


def test_save_settings_reports_failure(tmp_path):
    settings = SettingsController(str(tmp_path / "no-such-dir" / "settings.ini"))
    assert settings.save_settings() is False


def test_controller_uses_history_capacity(tmp_path):
    path = _write(tmp_path / "settings.ini", "[History]\ncapacity = 3\n")
    controller = DocumentController(SettingsController(path))
    assert controller.history.capacity == 3
    for _ in range(5):
        controller.add_layer()
    assert len(controller.history) == 3
