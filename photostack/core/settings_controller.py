import configparser
import logging

from PySide6.QtCore import QObject

from photostack.core.codec import normalize_format
from photostack.core.undo import DEFAULT_HISTORY_CAPACITY


logger = logging.getLogger(__name__)


class SettingsController(QObject):
    """Manages application settings persistence."""

    DEFAULT_PATH = "settings.ini"

    DEFAULT_HISTORY_SETTINGS = {
        "capacity": DEFAULT_HISTORY_CAPACITY,
    }

    DEFAULT_CANVAS_SETTINGS = {
        "default_width": 640,
        "default_height": 480,
    }

    DEFAULT_EXPORT_SETTINGS = {
        "format": "PNG",
        "jpeg_quality": 90,
    }

    def __init__(self, path: str | None = None):
        super().__init__()
        self.path = path or self.DEFAULT_PATH
        self.config = configparser.ConfigParser()
        self.config.read(self.path)

        if not self.config.has_section('History'):
            self.config.add_section('History')
        self.history_capacity = self._get_positive_int(
            'History', 'capacity', self.DEFAULT_HISTORY_SETTINGS["capacity"]
        )
        self._sync_history_settings_to_config()

        if not self.config.has_section('Canvas'):
            self.config.add_section('Canvas')
        self.canvas_default_width = self._get_positive_int(
            'Canvas', 'default_width', self.DEFAULT_CANVAS_SETTINGS["default_width"]
        )
        self.canvas_default_height = self._get_positive_int(
            'Canvas', 'default_height', self.DEFAULT_CANVAS_SETTINGS["default_height"]
        )
        self._sync_canvas_settings_to_config()

        if not self.config.has_section('Export'):
            self.config.add_section('Export')
        raw_format = self.config.get(
            'Export', 'format', fallback=self.DEFAULT_EXPORT_SETTINGS["format"]
        )
        try:
            self.export_format = normalize_format(raw_format)
        except ValueError:
            logger.warning("Unknown export format %r in %s, using PNG", raw_format, self.path)
            self.export_format = self.DEFAULT_EXPORT_SETTINGS["format"]

        try:
            quality = self.config.getint('Export', 'jpeg_quality')
        except (configparser.NoOptionError, ValueError):
            quality = self.DEFAULT_EXPORT_SETTINGS["jpeg_quality"]
        self.export_jpeg_quality = max(1, min(100, quality))
        self._sync_export_settings_to_config()

    def save_settings(self) -> bool:
        """Persist settings to disk."""
        try:
            self._sync_history_settings_to_config()
            self._sync_canvas_settings_to_config()
            self._sync_export_settings_to_config()

            with open(self.path, 'w') as configfile:
                self.config.write(configfile)
        except OSError as e:
            logger.error("Could not write to %s: %s", self.path, e)
            return False
        return True

    def _get_positive_int(self, section, option, fallback):
        try:
            value = self.config.getint(section, option)
        except (configparser.NoOptionError, ValueError):
            return fallback
        return value if value >= 1 else fallback

    def _sync_history_settings_to_config(self):
        self.config.set('History', 'capacity', str(int(self.history_capacity)))

    def _sync_canvas_settings_to_config(self):
        self.config.set('Canvas', 'default_width', str(int(self.canvas_default_width)))
        self.config.set('Canvas', 'default_height', str(int(self.canvas_default_height)))

    def _sync_export_settings_to_config(self):
        self.config.set('Export', 'format', self.export_format)
        self.config.set('Export', 'jpeg_quality', str(int(self.export_jpeg_quality)))

    def get_canvas_settings(self):
        return {
            'default_width': int(self.canvas_default_width),
            'default_height': int(self.canvas_default_height),
        }

    def get_export_settings(self):
        return {
            'format': self.export_format,
            'jpeg_quality': int(self.export_jpeg_quality),
        }
