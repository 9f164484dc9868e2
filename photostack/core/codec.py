from __future__ import annotations

import io
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum, auto

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError
from PySide6.QtCore import QThread, Signal
from PySide6.QtGui import QImage

from photostack.core.errors import DecodeFailure
from photostack.core.pipeline import array_to_qimage, qimage_to_array


logger = logging.getLogger(__name__)


class DecodeTarget(Enum):
    DOCUMENT = auto()
    NEW_LAYER = auto()


_request_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class DecodeRequest:
    """What a pending decode will write to once it completes.

    ``layer_uid``/``generation`` record the target layer as it was when the
    decode started; a completed decode is applied only while they still
    match the live layer.
    """

    target: DecodeTarget
    layer_uid: int | None
    generation: int | None
    name: str = "Background"
    request_id: int = field(default_factory=lambda: next(_request_ids))


class ImageDecoder:
    """Decodes encoded image bytes into ``Format_ARGB32`` images."""

    @staticmethod
    def decode(data: bytes) -> QImage:
        if not data:
            raise DecodeFailure("No image data to decode.")
        try:
            with Image.open(io.BytesIO(data)) as source:
                source.load()
                oriented = ImageOps.exif_transpose(source)
                pixels = np.asarray(oriented.convert("RGBA"), dtype=np.uint8)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeFailure(f"Could not decode image: {e}") from e

        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise DecodeFailure("Decoded image has no pixels.")
        return array_to_qimage(pixels)


class DecodeThread(QThread):
    """Runs :meth:`ImageDecoder.decode` off the GUI thread."""

    decode_complete = Signal(object, object)
    decode_failed = Signal(object, str)

    def __init__(self, request: DecodeRequest, data: bytes, decoder: ImageDecoder | None = None):
        super().__init__()
        self.request = request
        self.data = data
        self.decoder = decoder or ImageDecoder()

    def run(self):
        try:
            image = self.decoder.decode(self.data)
        except DecodeFailure as e:
            logger.warning("Decode %d failed: %s", self.request.request_id, e)
            self.decode_failed.emit(self.request, str(e))
            return
        self.decode_complete.emit(self.request, image)


EXPORT_FORMATS = {
    "PNG": "PNG",
    "JPG": "JPEG",
    "JPEG": "JPEG",
    "BMP": "BMP",
    "WEBP": "WEBP",
    "TIF": "TIFF",
    "TIFF": "TIFF",
}

# Formats without an alpha channel are flattened onto white.
_OPAQUE_FORMATS = frozenset({"JPEG", "BMP"})


def normalize_format(fmt: str) -> str:
    try:
        return EXPORT_FORMATS[str(fmt).strip().lstrip(".").upper()]
    except KeyError:
        raise ValueError(f"Unsupported export format: {fmt!r}") from None


def encode_image(image: QImage, fmt: str = "PNG", quality: int = 90) -> bytes:
    """Encode *image* with Pillow and return the file bytes."""
    fmt = normalize_format(fmt)
    picture = Image.fromarray(qimage_to_array(image))
    options = {}
    if fmt in _OPAQUE_FORMATS:
        backdrop = Image.new("RGBA", picture.size, (255, 255, 255, 255))
        backdrop.alpha_composite(picture)
        picture = backdrop.convert("RGB")
    if fmt == "JPEG":
        options["quality"] = max(1, min(100, int(quality)))
    elif fmt == "WEBP":
        options["lossless"] = True

    buffer = io.BytesIO()
    picture.save(buffer, format=fmt, **options)
    return buffer.getvalue()
