"""
Configuration dataclass for the evolution driver.

The defaults reproduce the demo run: a 32x16 grid of 4-channel cells, a
24-unit hidden layer, 8 generations of 30 steps each.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .errors import InvalidDimensions


@dataclass
class Config:
    """
    Parameters for one evolution run.

    Attributes:
        width: Grid width in cells
        height: Grid height in cells
        channels: Values per cell (also the rule's output size)
        hidden: Hidden layer width of the rule
        generations: Number of generations to run
        steps_per_generation: Grid steps between two mutations
        mutation_intensity: Half-width of the uniform parameter perturbation
        seed: Seed for the shared random generator (None = fresh entropy)
    """

    width: int = 32
    height: int = 16
    channels: int = 4
    hidden: int = 24

    generations: int = 8
    steps_per_generation: int = 30
    mutation_intensity: float = 0.01

    seed: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        self._validate()

    def _validate(self) -> None:
        """Check that all parameters are in valid ranges."""
        if self.width < 1 or self.height < 1:
            raise InvalidDimensions(
                f"grid must be at least 1x1, got {self.width}x{self.height}"
            )

        if self.channels < 1:
            raise InvalidDimensions(f"channels must be >= 1, got {self.channels}")

        if self.hidden < 1:
            raise InvalidDimensions(f"hidden must be >= 1, got {self.hidden}")

        if self.generations < 0:
            raise ValueError(f"generations must be >= 0, got {self.generations}")

        if self.steps_per_generation < 0:
            raise ValueError(
                f"steps_per_generation must be >= 0, got {self.steps_per_generation}"
            )

        if self.mutation_intensity < 0:
            raise ValueError(
                f"mutation_intensity must be >= 0, got {self.mutation_intensity}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_args(cls, args: Any) -> "Config":
        """Create config from argparse namespace."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        config_dict = {k: v for k, v in vars(args).items() if k in known_fields and v is not None}
        return cls(**config_dict)
