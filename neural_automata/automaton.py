"""2D continuous cellular automaton driven by a small two-layer network rule."""

import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Tuple, Optional

from .errors import ShapeMismatch, InvalidDimensions

# Moore neighborhood offsets in enumeration order: dy outer, dx inner
OFFSETS: List[Tuple[int, int]] = [(dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1)]
NEIGHBORHOOD_SIZE = len(OFFSETS)

# Blend of old state and rule output applied on every step
RETENTION = 0.6
UPDATE = 0.4


def relu(v: np.ndarray) -> np.ndarray:
    return np.maximum(v, 0.0)


def sigmoid(v: np.ndarray) -> np.ndarray:
    """Logistic function, evaluated without overflow for large |v|."""
    e = np.exp(-np.abs(v))
    return np.where(v >= 0, 1.0 / (1.0 + e), e / (1.0 + e))


@dataclass(eq=False)
class Rule:
    """
    Two-layer feed-forward update rule shared by every cell of a grid.

    Maps a flattened 3x3 neighborhood (9 * C values) to a new C-channel
    state: ``sigmoid(b2 + W2 @ relu(b1 + W1 @ x))``.
    """
    W1: np.ndarray  # hidden x input
    b1: np.ndarray  # hidden
    W2: np.ndarray  # output x hidden
    b2: np.ndarray  # output

    def __post_init__(self):
        self.W1 = np.array(self.W1, dtype=np.float64)
        self.b1 = np.array(self.b1, dtype=np.float64)
        self.W2 = np.array(self.W2, dtype=np.float64)
        self.b2 = np.array(self.b2, dtype=np.float64)

        if self.W1.ndim != 2 or self.W2.ndim != 2 or self.b1.ndim != 1 or self.b2.ndim != 1:
            raise ShapeMismatch("weights must be matrices and biases must be vectors")

        hidden, inputs = self.W1.shape
        outputs = self.W2.shape[0]
        if hidden < 1 or outputs < 1:
            raise InvalidDimensions(f"hidden and output sizes must be >= 1, got {hidden} and {outputs}")
        if self.b1.shape != (hidden,):
            raise ShapeMismatch(f"b1 has shape {self.b1.shape}, expected ({hidden},)")
        if self.W2.shape != (outputs, hidden):
            raise ShapeMismatch(f"W2 has shape {self.W2.shape}, expected ({outputs}, {hidden})")
        if self.b2.shape != (outputs,):
            raise ShapeMismatch(f"b2 has shape {self.b2.shape}, expected ({outputs},)")
        if inputs != NEIGHBORHOOD_SIZE * outputs:
            raise ShapeMismatch(
                f"input size {inputs} must be {NEIGHBORHOOD_SIZE} x output size {outputs}"
            )

    @classmethod
    def random(
        cls,
        channels: int,
        hidden: int,
        rng: Optional[np.random.Generator] = None,
    ) -> "Rule":
        """Generate a rule with every parameter uniform in [-1, 1]."""
        if channels < 1 or hidden < 1:
            raise InvalidDimensions(f"channels and hidden must be >= 1, got {channels} and {hidden}")
        if rng is None:
            rng = np.random.default_rng()
        inputs = NEIGHBORHOOD_SIZE * channels
        return cls(
            W1=rng.uniform(-1.0, 1.0, size=(hidden, inputs)),
            b1=rng.uniform(-1.0, 1.0, size=hidden),
            W2=rng.uniform(-1.0, 1.0, size=(channels, hidden)),
            b2=rng.uniform(-1.0, 1.0, size=channels),
        )

    @classmethod
    def zeros(cls, channels: int, hidden: int) -> "Rule":
        """All-zero rule; its output is sigmoid(0) = 0.5 everywhere."""
        if channels < 1 or hidden < 1:
            raise InvalidDimensions(f"channels and hidden must be >= 1, got {channels} and {hidden}")
        inputs = NEIGHBORHOOD_SIZE * channels
        return cls(
            W1=np.zeros((hidden, inputs)),
            b1=np.zeros(hidden),
            W2=np.zeros((channels, hidden)),
            b2=np.zeros(channels),
        )

    @property
    def channels(self) -> int:
        return self.W2.shape[0]

    @property
    def hidden_size(self) -> int:
        return self.W1.shape[0]

    @property
    def input_size(self) -> int:
        return self.W1.shape[1]

    def shapes(self) -> Dict[str, Tuple[int, ...]]:
        """Shapes of all parameter arrays."""
        return {
            "W1": self.W1.shape,
            "b1": self.b1.shape,
            "W2": self.W2.shape,
            "b2": self.b2.shape,
        }

    def parameter_count(self) -> int:
        return self.W1.size + self.b1.size + self.W2.size + self.b2.size

    def copy(self) -> "Rule":
        return Rule(W1=self.W1, b1=self.b1, W2=self.W2, b2=self.b2)

    def forward(self, x: np.ndarray) -> np.ndarray:
        """
        Evaluate the rule on a flattened neighborhood.

        Accepts a single vector of length 9 * C or a batch shaped (..., 9 * C)
        and returns values in (0, 1) shaped (C,) or (..., C). Pure: the same
        input and parameters always give the same output.
        """
        x = np.asarray(x, dtype=np.float64)
        if x.ndim == 0 or x.shape[-1] != self.input_size:
            raise ShapeMismatch(
                f"rule expects input of length {self.input_size}, got shape {x.shape}"
            )
        hidden = relu(x @ self.W1.T + self.b1)
        return sigmoid(hidden @ self.W2.T + self.b2)

    def mutate(self, intensity: float, rng: Optional[np.random.Generator] = None):
        """Add uniform noise in [-intensity, intensity] to every parameter, in place."""
        if rng is None:
            rng = np.random.default_rng()
        for param in (self.W1, self.b1, self.W2, self.b2):
            param += rng.uniform(-intensity, intensity, size=param.shape)


def random_cells(
    width: int,
    height: int,
    channels: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Uniform random cell states in [0, 1], shaped (height, width, channels)."""
    if rng is None:
        rng = np.random.default_rng()
    return rng.random((height, width, channels))


class Grid:
    """Toroidal 2D lattice of multi-channel cells updated by one shared rule."""

    def __init__(
        self,
        width: int,
        height: int,
        rule: Rule,
        channels: Optional[int] = None,
        cells: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        if width < 1 or height < 1:
            raise InvalidDimensions(f"grid must be at least 1x1, got {width}x{height}")
        if channels is None:
            channels = rule.channels
        if channels < 1:
            raise InvalidDimensions(f"channels must be >= 1, got {channels}")
        if channels != rule.channels:
            raise ShapeMismatch(
                f"grid has {channels} channels but rule outputs {rule.channels}"
            )
        if rule.input_size != NEIGHBORHOOD_SIZE * channels:
            raise ShapeMismatch(
                f"rule input size {rule.input_size} does not match a 3x3 neighborhood "
                f"of {channels}-channel cells"
            )

        self.width = width
        self.height = height
        self.channels = channels
        self.rule = rule
        self.generation = 0
        self._history: List[np.ndarray] = []

        if cells is None:
            self._cells = random_cells(width, height, channels, rng)
        else:
            self._cells = self._validated(cells)

    def _validated(self, cells: np.ndarray) -> np.ndarray:
        cells = np.array(cells, dtype=np.float64)
        expected = (self.height, self.width, self.channels)
        if cells.shape != expected:
            raise ShapeMismatch(f"cells have shape {cells.shape}, expected {expected}")
        if not np.all((cells >= 0.0) & (cells <= 1.0)):
            raise ValueError("cell values must lie in [0, 1]")
        return cells

    @property
    def cells(self) -> np.ndarray:
        """Read-only view of the current state, shaped (height, width, channels)."""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    def set_cells(self, cells: np.ndarray):
        """Replace the whole grid state."""
        self._cells = self._validated(cells)

    def channel(self, c: int) -> np.ndarray:
        """Values of a single channel, shaped (height, width)."""
        if not 0 <= c < self.channels:
            raise ValueError(f"channel must be in [0, {self.channels}), got {c}")
        return self.cells[:, :, c]

    def neighborhood(self, x: int, y: int) -> np.ndarray:
        """Flattened 3x3 neighborhood of (x, y) with toroidal wraparound."""
        return self._neighborhood_of(self._cells, x, y)

    def _neighborhood_of(self, snapshot: np.ndarray, x: int, y: int) -> np.ndarray:
        parts = []
        for dx, dy in OFFSETS:
            nx = (x + dx) % self.width
            ny = (y + dy) % self.height
            parts.append(snapshot[ny, nx])
        return np.concatenate(parts)

    def neighborhoods(self) -> np.ndarray:
        """Flattened neighborhoods of every cell, shaped (height, width, 9 * channels)."""
        return self._neighborhoods_of(self._cells)

    @staticmethod
    def _neighborhoods_of(snapshot: np.ndarray) -> np.ndarray:
        # roll by -d so that index y reads (y + d) mod n
        blocks = [np.roll(snapshot, shift=(-dy, -dx), axis=(0, 1)) for dx, dy in OFFSETS]
        return np.concatenate(blocks, axis=-1)

    def step(self, record_history: bool = False):
        """Advance every cell by one synchronous update."""
        if record_history:
            self._history.append(self._cells.copy())

        snapshot = self._cells
        out = self.rule.forward(self._neighborhoods_of(snapshot))

        # New buffer; the snapshot is never written to
        self._cells = np.clip(snapshot * RETENTION + out * UPDATE, 0.0, 1.0)
        self.generation += 1

    def step_cellwise(self, record_history: bool = False):
        """Same update as step(), evaluated one cell at a time."""
        if record_history:
            self._history.append(self._cells.copy())

        snapshot = self._cells
        new_cells = np.empty_like(snapshot)
        for y in range(self.height):
            for x in range(self.width):
                out = self.rule.forward(self._neighborhood_of(snapshot, x, y))
                new_cells[y, x] = np.clip(snapshot[y, x] * RETENTION + out * UPDATE, 0.0, 1.0)

        self._cells = new_cells
        self.generation += 1

    def run(self, steps: int, record_history: bool = False) -> List[np.ndarray]:
        """Run simulation for multiple steps."""
        for _ in range(steps):
            self.step(record_history=record_history)
        if record_history:
            self._history.append(self._cells.copy())
        return self._history

    def get_history(self) -> List[np.ndarray]:
        """Get recorded history."""
        return self._history

    def clear_history(self):
        self._history = []
