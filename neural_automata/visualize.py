"""Rendering utilities: ASCII glyph frames and RGB images."""

import numpy as np
from typing import List, Union

from PIL import Image

try:
    import matplotlib.pyplot as plt
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from .automaton import Grid
from .errors import ShapeMismatch

# Sparse to dense
GLYPH_RAMP = " .:-=+*#%@"

GridLike = Union[Grid, np.ndarray]


def _values(grid: GridLike) -> np.ndarray:
    """Cell values shaped (height, width, channels)."""
    if isinstance(grid, Grid):
        return grid.cells
    values = np.asarray(grid, dtype=np.float64)
    if values.ndim != 3:
        raise ShapeMismatch(f"expected cells shaped (height, width, channels), got {values.shape}")
    return values


def render_ascii(grid: GridLike, channel: int = 0, ramp: str = GLYPH_RAMP) -> str:
    """
    Render one channel as text, one newline-terminated row per grid row.

    A value v maps to ramp[floor(v * (len(ramp) - 1))].
    """
    values = _values(grid)
    if not 0 <= channel < values.shape[-1]:
        raise ValueError(f"channel must be in [0, {values.shape[-1]}), got {channel}")
    if len(ramp) < 2:
        raise ValueError("ramp needs at least two glyphs")

    top = len(ramp) - 1
    indices = np.clip(np.floor(values[:, :, channel] * top), 0, top).astype(int)
    return "".join("".join(ramp[i] for i in row) + "\n" for row in indices)


def render_image(grid: GridLike, cell_size: int = 4) -> np.ndarray:
    """
    Render channels 0-2 as R, G, B. Grids with fewer channels reuse the last
    one, so a single-channel grid renders in grayscale.
    """
    values = _values(grid)
    channels = values.shape[-1]
    rgb = values[:, :, [min(i, channels - 1) for i in range(3)]]
    img = np.clip(np.round(rgb * 255), 0, 255).astype(np.uint8)

    # Upscale using repeat
    return np.repeat(np.repeat(img, cell_size, axis=0), cell_size, axis=1)


def save_image(grid: GridLike, filepath: str, cell_size: int = 4):
    """Save grid state as PNG image."""
    img = Image.fromarray(render_image(grid, cell_size))
    img.save(filepath)


def save_animation(
    history: List[np.ndarray],
    filepath: str,
    cell_size: int = 4,
    duration: int = 100,
    loop: int = 0,
):
    """Save a sequence of snapshots as animated GIF."""
    frames = [Image.fromarray(render_image(cells, cell_size)) for cells in history]

    if frames:
        frames[0].save(
            filepath,
            save_all=True,
            append_images=frames[1:],
            duration=duration,
            loop=loop,
        )


def display_grid(grid: GridLike, channel: int = 0, title: str = "Neural Automaton"):
    """Display one channel using matplotlib (for interactive use)."""
    if not HAS_MATPLOTLIB:
        raise ImportError("Matplotlib required for display. Install with: pip install matplotlib")

    values = _values(grid)
    plt.figure(figsize=(8, 8 * values.shape[0] / values.shape[1]))
    plt.imshow(values[:, :, channel], cmap="magma", vmin=0.0, vmax=1.0, interpolation="nearest")
    plt.title(title)
    plt.axis("off")
    plt.tight_layout()
    plt.show()
