"""Generation loop: run the grid, score it, then perturb the shared rule."""

import numpy as np
from typing import Callable, Dict, List, Optional
from dataclasses import dataclass, field

from .automaton import Grid, Rule
from .config import Config
from .metrics import variance, evaluate_grid


@dataclass
class GenerationRecord:
    """Score of the grid at the end of one generation."""
    generation: int
    score: float  # Population variance, before the mutation of this generation
    steps: int  # Total grid steps taken so far
    metrics: Dict = field(default_factory=dict)


@dataclass
class EvolutionResult:
    """Results from an evolution run."""
    records: List[GenerationRecord]
    grid: Grid
    rule: Rule

    @property
    def scores(self) -> List[float]:
        return [r.score for r in self.records]


class EvolutionDriver:
    """
    Runs a fixed number of generations on one rule and one grid.

    Each generation steps the grid, scores it by variance and then mutates the
    rule unconditionally. The score is only reported; it never decides whether
    a mutation is kept.
    """

    def __init__(self, config: Optional[Config] = None, detailed_metrics: bool = False):
        self.config = config or Config()
        self.detailed_metrics = detailed_metrics
        self.rng = np.random.default_rng(self.config.seed)

        self.rule = Rule.random(self.config.channels, self.config.hidden, rng=self.rng)
        self.grid = Grid(
            self.config.width,
            self.config.height,
            self.rule,
            channels=self.config.channels,
            rng=self.rng,
        )

        self.generation = 0
        self.records: List[GenerationRecord] = []

    def run_generation(self) -> GenerationRecord:
        """Step the grid, score it, then mutate the rule."""
        history = None
        if self.detailed_metrics:
            self.grid.clear_history()
            history = self.grid.run(self.config.steps_per_generation, record_history=True)
        else:
            self.grid.run(self.config.steps_per_generation)

        score = variance(self.grid)
        metrics = evaluate_grid(self.grid, history).to_dict() if self.detailed_metrics else {}

        # Only after all steps of this generation have finished
        self.rule.mutate(self.config.mutation_intensity, rng=self.rng)

        self.generation += 1
        record = GenerationRecord(
            generation=self.generation,
            score=score,
            steps=self.grid.generation,
            metrics=metrics,
        )
        self.records.append(record)
        return record

    def run(
        self,
        callback: Optional[Callable[[GenerationRecord, Grid], None]] = None,
        verbose: bool = True,
    ) -> EvolutionResult:
        """Run all configured generations."""
        if verbose:
            print(f"Evolving {self.config.width}x{self.config.height} grid, "
                  f"{self.config.channels} channels, {self.rule.parameter_count()} parameters")

        for _ in range(self.config.generations):
            record = self.run_generation()

            if verbose:
                print(f"Gen {record.generation:3d}: variance={record.score:.6f}")

            if callback:
                callback(record, self.grid)

        return EvolutionResult(records=self.records, grid=self.grid, rule=self.rule)
