import dataclasses

import pytest

from photostack.core.adjustments import (
    BLUR_MAX,
    FIELD_RANGES,
    PRESETS,
    AdjustmentVector,
    clamp_field,
)


def test_default_vector_is_identity():
    """A fresh vector has every field at zero."""
    vector = AdjustmentVector()
    assert vector.is_identity()
    assert vector.as_dict() == {name: 0 for name in FIELD_RANGES}


def test_values_are_clamped_to_field_ranges():
    vector = AdjustmentVector(brightness=150, contrast=-300, hue=-500, blur=50, vignette=-5)
    assert vector.brightness == 100
    assert vector.contrast == -100
    assert vector.hue == -180
    assert vector.blur == BLUR_MAX
    assert vector.vignette == 0


def test_with_value_returns_new_vector():
    """with_value leaves the original untouched and rounds to an int."""
    original = AdjustmentVector()
    updated = original.with_value("contrast", 12.6)
    assert updated.contrast == 13
    assert original.contrast == 0
    assert original.with_value("saturation", 999).saturation == 100


def test_vector_is_frozen():
    vector = AdjustmentVector()
    with pytest.raises(dataclasses.FrozenInstanceError):
        vector.brightness = 10


def test_unknown_field_and_bad_values_raise():
    with pytest.raises(ValueError):
        AdjustmentVector().with_value("sharpness", 10)
    with pytest.raises(ValueError):
        clamp_field("brightness", "bright")
    with pytest.raises(ValueError):
        AdjustmentVector.from_mapping({"exposure": 5})


def test_bw_preset_is_exclusive():
    """Presets replace the whole vector; unnamed fields go back to zero."""
    vector = AdjustmentVector.from_preset("bw")
    assert vector.saturation == -100
    assert vector.contrast == 15
    assert vector.brightness == 0
    assert vector.hue == 0
    assert vector.blur == 0
    assert vector.vignette == 0


@pytest.mark.parametrize("name", sorted(PRESETS))
def test_every_preset_matches_its_table(name):
    expected = {field: 0 for field in FIELD_RANGES}
    expected.update(PRESETS[name])
    assert AdjustmentVector.from_preset(name).as_dict() == expected


def test_none_preset_is_identity():
    assert AdjustmentVector.from_preset("none").is_identity()


def test_unknown_preset_raises():
    with pytest.raises(ValueError):
        AdjustmentVector.from_preset("lomo")
