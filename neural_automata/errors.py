"""Construction-time errors for rules and grids."""


class ShapeMismatch(ValueError):
    """Rule dimensions are incompatible with each other or with a grid."""


class InvalidDimensions(ValueError):
    """Grid width, height, channel count or hidden width is below 1."""
