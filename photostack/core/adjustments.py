from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Mapping


BLUR_MAX = 20

# Inclusive (minimum, maximum) for each adjustment field.
FIELD_RANGES: dict[str, tuple[int, int]] = {
    "brightness": (-100, 100),
    "contrast": (-100, 100),
    "saturation": (-100, 100),
    "hue": (-180, 180),
    "blur": (0, BLUR_MAX),
    "vignette": (0, 100),
}

PRESETS: dict[str, dict[str, int]] = {
    "none": {},
    "bw": {"saturation": -100, "contrast": 15},
    "vintage": {"brightness": 10, "contrast": -10, "saturation": -30, "vignette": 40},
    "sepia": {"brightness": 5, "saturation": -70, "hue": 30},
    "dramatic": {"contrast": 40, "saturation": 20, "vignette": 50},
    "cool": {"brightness": -5, "saturation": 10, "hue": 20},
    "warm": {"brightness": 5, "saturation": 15, "hue": -15},
}


def clamp_field(field: str, value) -> int:
    """Return *value* as an int clamped to the valid range of *field*."""

    try:
        low, high = FIELD_RANGES[field]
    except KeyError:
        raise ValueError(f"Unknown adjustment field: {field!r}") from None
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        raise ValueError(f"Adjustment value for {field!r} must be numeric.") from None
    return max(low, min(high, number))


@dataclass(frozen=True, slots=True)
class AdjustmentVector:
    """Per-layer filter parameters. All zero means the identity render."""

    brightness: int = 0
    contrast: int = 0
    saturation: int = 0
    hue: int = 0
    blur: int = 0
    vignette: int = 0

    def __post_init__(self):
        for item in fields(self):
            object.__setattr__(self, item.name, clamp_field(item.name, getattr(self, item.name)))

    def with_value(self, field: str, value) -> "AdjustmentVector":
        return replace(self, **{field: clamp_field(field, value)})

    def is_identity(self) -> bool:
        return self == AdjustmentVector()

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, values: Mapping[str, int]) -> "AdjustmentVector":
        for name in values:
            if name not in FIELD_RANGES:
                raise ValueError(f"Unknown adjustment field: {name!r}")
        return cls(**dict(values))

    @classmethod
    def from_preset(cls, name: str) -> "AdjustmentVector":
        """Build the vector for preset *name*.

        Presets are exclusive: fields the preset does not name stay at
        identity rather than keeping any previous value.
        """

        try:
            values = PRESETS[name]
        except KeyError:
            raise ValueError(f"Unknown preset: {name!r}") from None
        return cls.from_mapping(values)
