"""
Tests for ASCII and image rendering.
"""

import numpy as np
import pytest
from PIL import Image

from neural_automata.errors import ShapeMismatch
from neural_automata.visualize import (
    GLYPH_RAMP,
    render_ascii,
    render_image,
    save_animation,
    save_image,
)


class TestRenderAscii:
    """Tests for the glyph ramp renderer."""

    def test_ramp(self):
        """Ramp runs sparse to dense over ten glyphs."""
        assert GLYPH_RAMP == " .:-=+*#%@"

    def test_extremes(self):
        """0 maps to space, 1 maps to the densest glyph."""
        cells = np.array([[[0.0], [1.0]]])
        assert render_ascii(cells) == " @\n"

    def test_floor_mapping(self):
        """Glyph index is floor(v * 9)."""
        cells = np.array([[[0.5], [0.12], [0.999]]])
        assert render_ascii(cells) == "=.%\n"

    def test_rows(self, random_grid):
        """One newline-terminated row per grid row."""
        text = render_ascii(random_grid, channel=2)
        lines = text.split("\n")
        assert text.endswith("\n")
        assert len(lines) == 6 and lines[-1] == ""
        assert all(len(line) == 7 for line in lines[:-1])
        assert set(text) <= set(GLYPH_RAMP + "\n")

    def test_channel_selection(self):
        """Only the requested channel is drawn."""
        cells = np.array([[[0.0, 1.0]]])
        assert render_ascii(cells, channel=0) == " \n"
        assert render_ascii(cells, channel=1) == "@\n"

    def test_requires_channel_axis(self):
        """A bare (height, width) array is rejected."""
        with pytest.raises(ShapeMismatch):
            render_ascii(np.zeros((2, 2)))

    def test_invalid_channel(self, random_grid):
        """Out-of-range channels are rejected."""
        with pytest.raises(ValueError):
            render_ascii(random_grid, channel=3)


class TestRenderImage:
    """Tests for RGB rendering and file output."""

    def test_shape(self, random_grid):
        """Image is upscaled by cell size."""
        img = render_image(random_grid, cell_size=3)
        assert img.shape == (15, 21, 3)
        assert img.dtype == np.uint8

    def test_single_channel_is_gray(self):
        """A one-channel grid renders equal R, G and B."""
        img = render_image(np.array([[[0.2], [0.8]]]), cell_size=1)
        assert np.all(img[..., 0] == img[..., 1])
        assert np.all(img[..., 1] == img[..., 2])

    def test_save_image(self, random_grid, tmp_path):
        """PNG is written with the expected size."""
        path = tmp_path / "frame.png"
        save_image(random_grid, str(path), cell_size=2)
        with Image.open(path) as img:
            assert img.size == (14, 10)

    def test_save_animation(self, random_grid, tmp_path):
        """GIF holds one frame per snapshot."""
        history = random_grid.run(3, record_history=True)
        path = tmp_path / "run.gif"
        save_animation(history, str(path), cell_size=2)
        with Image.open(path) as img:
            assert img.n_frames == len(history)
