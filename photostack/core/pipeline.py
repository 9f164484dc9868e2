from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable

import numpy as np
from PIL import Image, ImageFilter
from PySide6.QtCore import QPointF
from PySide6.QtGui import QBrush, QColor, QImage, QPainter, QRadialGradient

from photostack.core.adjustments import AdjustmentVector


# Rec. 709 luma weights.
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)
MID_GRAY = 128.0


# ----------------------------------------------------------------------
# QImage <-> ndarray
# ----------------------------------------------------------------------
def qimage_to_array(image: QImage) -> np.ndarray:
    """Return a ``(height, width, 4)`` uint8 RGBA copy of *image*."""

    converted = image.convertToFormat(QImage.Format_RGBA8888)
    width = converted.width()
    height = converted.height()
    stride = converted.bytesPerLine()
    raw = np.frombuffer(converted.constBits(), dtype=np.uint8, count=converted.sizeInBytes())
    return raw.reshape(height, stride)[:, : width * 4].reshape(height, width, 4).copy()


def array_to_qimage(array: np.ndarray) -> QImage:
    """Build an independent ``Format_ARGB32`` image from an RGBA array."""

    data = np.ascontiguousarray(array, dtype=np.uint8)
    height, width = data.shape[:2]
    buffer = data.tobytes()
    view = QImage(buffer, width, height, width * 4, QImage.Format_RGBA8888)
    # convertToFormat copies, so the result outlives ``buffer``.
    return view.convertToFormat(QImage.Format_ARGB32)


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


# ----------------------------------------------------------------------
# Pixel stages
# ----------------------------------------------------------------------
def adjust_brightness(pixels: np.ndarray, value: int) -> np.ndarray:
    result = pixels.copy()
    result[..., :3] = _to_uint8(pixels[..., :3] * ((100 + value) / 100.0))
    return result


def adjust_contrast(pixels: np.ndarray, value: int) -> np.ndarray:
    factor = (100 + value) / 100.0
    result = pixels.copy()
    rgb = pixels[..., :3].astype(np.float64)
    result[..., :3] = _to_uint8((rgb - MID_GRAY) * factor + MID_GRAY)
    return result


def adjust_saturation(pixels: np.ndarray, value: int) -> np.ndarray:
    factor = (100 + value) / 100.0
    result = pixels.copy()
    rgb = pixels[..., :3].astype(np.float64)
    luma = (rgb @ LUMA_WEIGHTS)[..., np.newaxis]
    result[..., :3] = _to_uint8(luma + (rgb - luma) * factor)
    return result


def _rgb_to_hsl(rgb: np.ndarray):
    maxc = rgb.max(axis=-1)
    minc = rgb.min(axis=-1)
    lightness = (maxc + minc) / 2.0
    delta = maxc - minc
    chromatic = delta > 0

    safe_delta = np.where(chromatic, delta, 1.0)
    denominator = np.where(lightness <= 0.5, maxc + minc, 2.0 - maxc - minc)
    saturation = np.where(chromatic, delta / np.where(denominator == 0, 1.0, denominator), 0.0)

    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    hue = np.where(
        maxc == r,
        np.mod((g - b) / safe_delta, 6.0),
        np.where(maxc == g, (b - r) / safe_delta + 2.0, (r - g) / safe_delta + 4.0),
    )
    hue = np.where(chromatic, hue * 60.0, 0.0)
    return hue, saturation, lightness


def _hsl_to_rgb(hue: np.ndarray, saturation: np.ndarray, lightness: np.ndarray) -> np.ndarray:
    chroma = (1.0 - np.abs(2.0 * lightness - 1.0)) * saturation
    sector = hue / 60.0
    second = chroma * (1.0 - np.abs(np.mod(sector, 2.0) - 1.0))
    zero = np.zeros_like(chroma)
    index = np.clip(np.floor(sector).astype(np.int64), 0, 5)

    red = np.choose(index, [chroma, second, zero, zero, second, chroma])
    green = np.choose(index, [second, chroma, chroma, second, zero, zero])
    blue = np.choose(index, [zero, zero, second, chroma, chroma, second])

    offset = lightness - chroma / 2.0
    return np.stack([red + offset, green + offset, blue + offset], axis=-1)


def rotate_hue(pixels: np.ndarray, value: int) -> np.ndarray:
    rgb = pixels[..., :3].astype(np.float64) / 255.0
    hue, saturation, lightness = _rgb_to_hsl(rgb)
    hue = np.mod(hue + value, 360.0)
    result = pixels.copy()
    result[..., :3] = _to_uint8(_hsl_to_rgb(hue, saturation, lightness) * 255.0)
    return result


def gaussian_blur(pixels: np.ndarray, value: int) -> np.ndarray:
    blurred = Image.fromarray(pixels).filter(ImageFilter.GaussianBlur(radius=value))
    return np.asarray(blurred, dtype=np.uint8).copy()


# ----------------------------------------------------------------------
# Surface stage
# ----------------------------------------------------------------------
def apply_vignette(image: QImage, value: int) -> QImage:
    """Multiply a radial black gradient over *image*.

    The gradient is transparent at the center and reaches ``value / 100``
    alpha at the half diagonal.
    """

    result = image.copy()
    width = result.width()
    height = result.height()
    center = QPointF(width / 2.0, height / 2.0)
    radius = math.sqrt((width / 2.0) ** 2 + (height / 2.0) ** 2)

    gradient = QRadialGradient(center, radius)
    gradient.setColorAt(0.0, QColor(0, 0, 0, 0))
    gradient.setColorAt(1.0, QColor(0, 0, 0, int(round(255 * value / 100.0))))

    painter = QPainter(result)
    try:
        painter.setCompositionMode(QPainter.CompositionMode_Multiply)
        painter.fillRect(result.rect(), QBrush(gradient))
    finally:
        painter.end()
    return result


# ----------------------------------------------------------------------
# Pipeline
# ----------------------------------------------------------------------
class StageKind(Enum):
    BRIGHTNESS = auto()
    CONTRAST = auto()
    SATURATION = auto()
    HUE = auto()
    BLUR = auto()
    VIGNETTE = auto()


@dataclass(frozen=True, slots=True)
class Stage:
    kind: StageKind
    field: str
    apply: Callable


PIXEL_STAGES: tuple[Stage, ...] = (
    Stage(StageKind.BRIGHTNESS, "brightness", adjust_brightness),
    Stage(StageKind.CONTRAST, "contrast", adjust_contrast),
    Stage(StageKind.SATURATION, "saturation", adjust_saturation),
    Stage(StageKind.HUE, "hue", rotate_hue),
    Stage(StageKind.BLUR, "blur", gaussian_blur),
)

# Always runs after every pixel stage.
SURFACE_STAGES: tuple[Stage, ...] = (
    Stage(StageKind.VIGNETTE, "vignette", apply_vignette),
)


def active_stages(adjustments: AdjustmentVector) -> list[StageKind]:
    """List the stages *adjustments* would run, in pipeline order."""

    return [
        stage.kind
        for stage in PIXEL_STAGES + SURFACE_STAGES
        if getattr(adjustments, stage.field) != 0
    ]


def render(base: QImage, adjustments: AdjustmentVector) -> QImage:
    """Render *base* through the adjustment pipeline.

    Pure: *base* is never modified and the result never shares its buffer.
    """

    pending = [
        (stage, getattr(adjustments, stage.field))
        for stage in PIXEL_STAGES
        if getattr(adjustments, stage.field) != 0
    ]
    if pending:
        pixels = qimage_to_array(base)
        for stage, value in pending:
            pixels = stage.apply(pixels, value)
        image = array_to_qimage(pixels)
    else:
        image = base.convertToFormat(QImage.Format_ARGB32).copy()

    for stage in SURFACE_STAGES:
        value = getattr(adjustments, stage.field)
        if value != 0:
            image = stage.apply(image, value)
    return image
