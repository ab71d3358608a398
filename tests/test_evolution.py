"""
Tests for the generation loop.
"""

import numpy as np
import pytest

from neural_automata.config import Config
from neural_automata.evolution import EvolutionDriver, EvolutionResult, GenerationRecord
from neural_automata.metrics import variance


class TestEvolutionDriver:
    """Tests for EvolutionDriver."""

    def test_init_builds_rule_and_grid(self, small_config):
        """Rule and grid follow the configured shape."""
        driver = EvolutionDriver(small_config)
        assert driver.grid.cells.shape == (6, 8, 3)
        assert driver.rule.shapes()["W1"] == (5, 27)
        assert driver.grid.rule is driver.rule

    def test_default_config(self):
        """Without a config the demo defaults are used."""
        driver = EvolutionDriver()
        assert driver.grid.cells.shape == (16, 32, 4)
        assert driver.rule.hidden_size == 24

    def test_run_generation(self, small_config):
        """One generation steps, scores, then mutates."""
        driver = EvolutionDriver(small_config)
        before = driver.rule.copy()
        record = driver.run_generation()

        assert isinstance(record, GenerationRecord)
        assert record.generation == 1
        assert record.steps == small_config.steps_per_generation
        assert driver.grid.generation == small_config.steps_per_generation
        # Mutation touches the rule only, so the grid still matches its score
        assert record.score == pytest.approx(variance(driver.grid))
        assert not np.array_equal(driver.rule.W1, before.W1)
        assert np.all(np.abs(driver.rule.W1 - before.W1) <= small_config.mutation_intensity)

    def test_run_counts(self, small_config):
        """run() performs exactly the configured generations."""
        result = EvolutionDriver(small_config).run(verbose=False)
        assert isinstance(result, EvolutionResult)
        assert [r.generation for r in result.records] == [1, 2, 3]
        assert [r.steps for r in result.records] == [4, 8, 12]
        assert len(result.scores) == 3
        assert all(s >= 0.0 for s in result.scores)

    def test_zero_generations(self):
        """No generations means no records and no mutation."""
        driver = EvolutionDriver(Config(width=3, height=3, channels=1, hidden=2, generations=0, seed=1))
        before = driver.rule.copy()
        result = driver.run(verbose=False)
        assert result.records == []
        assert np.array_equal(driver.rule.W1, before.W1)

    def test_zero_intensity_keeps_rule(self):
        """Mutation with zero intensity is a no-op."""
        config = Config(width=4, height=4, channels=2, hidden=3, generations=2,
                        steps_per_generation=2, mutation_intensity=0.0, seed=5)
        driver = EvolutionDriver(config)
        before = driver.rule.copy()
        driver.run(verbose=False)
        assert np.array_equal(driver.rule.W2, before.W2)

    def test_seeded_runs_repeat(self, small_config):
        """Same seed gives the same scores and final rule."""
        a = EvolutionDriver(small_config).run(verbose=False)
        b = EvolutionDriver(small_config).run(verbose=False)
        assert a.scores == b.scores
        assert np.array_equal(a.rule.b2, b.rule.b2)
        assert np.array_equal(a.grid.cells, b.grid.cells)

    def test_bounds_across_generations(self, small_config):
        """Cells stay in [0, 1] across every generation."""
        def check(record, grid):
            assert np.all(grid.cells >= 0.0) and np.all(grid.cells <= 1.0)

        EvolutionDriver(small_config).run(callback=check, verbose=False)

    def test_callback(self, small_config):
        """Callback receives every record and the grid."""
        seen = []
        driver = EvolutionDriver(small_config)
        driver.run(callback=lambda record, grid: seen.append((record.generation, grid)), verbose=False)
        assert [g for g, _ in seen] == [1, 2, 3]
        assert all(grid is driver.grid for _, grid in seen)

    def test_verbose_output(self, small_config, capsys):
        """Verbose runs print one line per generation."""
        EvolutionDriver(small_config).run(verbose=True)
        out = capsys.readouterr().out
        assert "Gen   1: variance=" in out
        assert "Gen   3: variance=" in out

    def test_detailed_metrics(self, small_config):
        """Detailed mode records the extra metrics."""
        record = EvolutionDriver(small_config, detailed_metrics=True).run_generation()
        assert record.metrics["variance"] == pytest.approx(record.score)
        assert "spatial_roughness" in record.metrics
        assert record.metrics["temporal_change"] > 0.0
