class EditorError(Exception):
    """Base class for errors reported by the editing engine."""


class InvalidLayerIndex(EditorError, IndexError):
    def __init__(self, index, count: int):
        super().__init__(f"Layer index {index} out of range (stack has {count} layers).")
        self.index = index
        self.count = count


class LastLayerRejected(EditorError, ValueError):
    def __init__(self):
        super().__init__("Cannot remove the last layer.")


class DecodeFailure(EditorError):
    """Raised or reported when encoded image bytes cannot be decoded."""


class LayerDimensionMismatch(AssertionError):
    """A transform left layers with sizes that differ from the canvas."""
