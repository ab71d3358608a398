"""Complexity metrics for scoring grid snapshots."""

import numpy as np
import zlib
from typing import Dict, List, Optional, Union
from dataclasses import dataclass
from scipy.ndimage import uniform_filter

from .automaton import Grid
from .errors import ShapeMismatch

GridLike = Union[Grid, np.ndarray]


def _values(grid: GridLike) -> np.ndarray:
    """Cell values shaped (height, width, channels)."""
    if isinstance(grid, Grid):
        return grid.cells
    values = np.asarray(grid, dtype=np.float64)
    if values.ndim != 3:
        raise ShapeMismatch(f"expected cells shaped (height, width, channels), got {values.shape}")
    return values


@dataclass
class GridMetrics:
    """Observational metrics of one grid snapshot."""
    variance: float  # Population variance over every channel value
    channel_variance: List[float]  # Population variance per channel
    spatial_roughness: float  # Mean deviation from the local 3x3 mean
    compression_ratio: float  # zlib ratio of the quantized grid
    temporal_change: float  # Mean absolute change between frames (0 without history)

    def to_dict(self) -> Dict:
        return {
            "variance": self.variance,
            "channel_variance": list(self.channel_variance),
            "spatial_roughness": self.spatial_roughness,
            "compression_ratio": self.compression_ratio,
            "temporal_change": self.temporal_change,
        }


def variance(grid: GridLike) -> float:
    """
    Population variance of all channel values of all cells.

    Every value is one sample: mean = sum(v) / n, variance = sum((v - mean)^2) / n.
    """
    values = _values(grid).ravel()
    if values.size == 0:
        return 0.0
    mean = values.sum() / values.size
    return float(np.sum((values - mean) ** 2) / values.size)


def channel_variance(grid: GridLike) -> List[float]:
    """Population variance of each channel separately."""
    values = _values(grid)
    return [float(v) for v in values.reshape(-1, values.shape[-1]).var(axis=0)]


def spatial_roughness(grid: GridLike) -> float:
    """
    Mean absolute difference between each value and its toroidal 3x3 mean.
    0 for a uniform grid, larger for noisy grids.
    """
    values = _values(grid)
    local_mean = uniform_filter(values, size=(3, 3, 1), mode="wrap")
    return float(np.mean(np.abs(values - local_mean)))


def compression_complexity(grid: GridLike, levels: int = 10) -> float:
    """Measure complexity via compression ratio of the grid quantized to `levels` bins."""
    values = _values(grid)
    quantized = np.minimum(np.floor(values * levels), levels - 1).astype(np.uint8)
    data = quantized.tobytes()
    if len(data) == 0:
        return 0.0
    compressed = zlib.compress(data, level=9)
    return float(len(compressed) / len(data))


def temporal_change_rate(history: List[np.ndarray]) -> float:
    """Calculate average absolute change between consecutive frames."""
    if len(history) < 2:
        return 0.0

    changes = []
    for i in range(1, len(history)):
        changes.append(np.mean(np.abs(history[i] - history[i-1])))

    return float(np.mean(changes))


def evaluate_grid(grid: GridLike, history: Optional[List[np.ndarray]] = None) -> GridMetrics:
    """Compute every metric for a snapshot, plus temporal change if history is given."""
    return GridMetrics(
        variance=variance(grid),
        channel_variance=channel_variance(grid),
        spatial_roughness=spatial_roughness(grid),
        compression_ratio=compression_complexity(grid),
        temporal_change=temporal_change_rate(history) if history else 0.0,
    )
