from __future__ import annotations

import logging
import os
from pathlib import Path

from photostack.core.codec import normalize_format


logger = logging.getLogger(__name__)


class DocumentService:
    """High level operations for loading and saving images on disk."""

    _RASTER_EXTENSIONS: frozenset[str] = frozenset({
        ".png",
        ".jpg",
        ".jpeg",
        ".bmp",
        ".webp",
        ".tif",
        ".tiff",
    })

    def __init__(self, app=None):
        self.app = app

    def open_image(self, file_path: str | os.PathLike) -> None:
        """Read *file_path* and make it the current document.

        Raises ``OSError`` when the file cannot be read and
        :class:`~photostack.core.errors.DecodeFailure` when it is not an image.
        """
        file_path = str(file_path)
        with open(file_path, "rb") as handle:
            data = handle.read()
        document = self.app.upload_image_sync(data)
        document.file_path = file_path
        logger.info("Opened %s", file_path)

    def save_image(self, file_path: str | os.PathLike) -> str:
        """Export the flattened document to *file_path*.

        The format follows the extension; a path without one is saved as PNG.
        Returns the path actually written.
        """
        target_path = self._normalize_save_path(str(file_path))
        fmt = normalize_format(Path(target_path).suffix)
        data = self.app.export(fmt)
        with open(target_path, "wb") as handle:
            handle.write(data)
        self.app.document.file_path = target_path
        return target_path

    def _normalize_save_path(self, file_path: str) -> str:
        path = Path(file_path)
        suffix = path.suffix.lower()
        if suffix in self._RASTER_EXTENSIONS:
            return str(path)
        if not suffix:
            return str(path.with_suffix(".png"))
        raise ValueError(f"Unsupported image extension: {suffix}")
