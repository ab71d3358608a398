"""Neural Automata - Evolve patterns on a toroidal grid from a mutating two-layer update rule."""

from .automaton import Grid, Rule
from .config import Config
from .errors import InvalidDimensions, ShapeMismatch
from .evolution import EvolutionDriver
from .metrics import variance

__all__ = ["Grid", "Rule", "Config", "EvolutionDriver", "variance", "ShapeMismatch", "InvalidDimensions"]
