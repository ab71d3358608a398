#!/usr/bin/env python3
"""CLI for evolving neural cellular automata."""

import argparse
import sys
from pathlib import Path

import numpy as np

from .automaton import Grid, Rule
from .config import Config
from .evolution import EvolutionDriver
from .metrics import evaluate_grid
from .visualize import render_ascii, save_animation, save_image


def cmd_run(args):
    """Evolve a rule for several generations, printing a frame per generation."""
    try:
        config = Config.from_args(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    check_channel(args.channel, config)

    verbose = not args.quiet
    driver = EvolutionDriver(config, detailed_metrics=args.metrics)

    frames = [driver.grid.cells.copy()]

    def on_generation(record, grid):
        frames.append(grid.cells.copy())
        if verbose:
            print(render_ascii(grid, channel=args.channel), end="")
            if record.metrics:
                print(f"  roughness={record.metrics['spatial_roughness']:.4f} "
                      f"compression={record.metrics['compression_ratio']:.4f} "
                      f"change={record.metrics['temporal_change']:.4f}")
            print()

    result = driver.run(callback=on_generation, verbose=verbose)

    print(f"Final variance: {result.scores[-1]:.6f}" if result.records else "No generations run.")

    if args.gif:
        output = Path(args.gif)
        output.parent.mkdir(parents=True, exist_ok=True)
        save_animation(frames, str(output), cell_size=args.cell_size, duration=args.frame_ms)
        print(f"Saved animation to: {output}")


def cmd_render(args):
    """Run a single random rule without mutation and show the result."""
    try:
        config = Config.from_args(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    check_channel(args.channel, config)

    rng = np.random.default_rng(config.seed)
    rule = Rule.random(config.channels, config.hidden, rng=rng)
    grid = Grid(config.width, config.height, rule, rng=rng)

    history = grid.run(args.steps, record_history=True)
    print(render_ascii(grid, channel=args.channel), end="")

    metrics = evaluate_grid(grid, history)
    print()
    print("Metrics:")
    print(f"  Variance:           {metrics.variance:.6f}")
    print(f"  Spatial roughness:  {metrics.spatial_roughness:.4f}")
    print(f"  Compression ratio:  {metrics.compression_ratio:.4f}")
    print(f"  Temporal change:    {metrics.temporal_change:.4f}")

    if args.png:
        output = Path(args.png)
        output.parent.mkdir(parents=True, exist_ok=True)
        save_image(grid, str(output), cell_size=args.cell_size)
        print(f"Saved snapshot to: {output}")


def check_channel(channel: int, config: Config):
    if not 0 <= channel < config.channels:
        print(f"Channel {channel} out of range for {config.channels} channels", file=sys.stderr)
        sys.exit(1)


def add_grid_arguments(parser: argparse.ArgumentParser):
    defaults = Config()
    parser.add_argument("--width", type=int, default=defaults.width, help="Grid width")
    parser.add_argument("--height", type=int, default=defaults.height, help="Grid height")
    parser.add_argument("--channels", type=int, default=defaults.channels, help="Channels per cell")
    parser.add_argument("--hidden", type=int, default=defaults.hidden, help="Hidden layer width")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("-c", "--channel", type=int, default=0, help="Channel to print")
    parser.add_argument("--cell-size", type=int, default=8, help="Cell size in pixels")


def main():
    parser = argparse.ArgumentParser(
        description="Neural Automata - evolve patterns from a mutating neural update rule"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    defaults = Config()

    # Run command
    run_parser = subparsers.add_parser("run", help="Evolve a rule over several generations")
    add_grid_arguments(run_parser)
    run_parser.add_argument("-g", "--generations", type=int, default=defaults.generations,
                            help="Number of generations")
    run_parser.add_argument("-s", "--steps-per-generation", type=int,
                            default=defaults.steps_per_generation, help="Steps per generation")
    run_parser.add_argument("-m", "--mutation-intensity", type=float,
                            default=defaults.mutation_intensity, help="Mutation intensity")
    run_parser.add_argument("--metrics", action="store_true", help="Report extra metrics per generation")
    run_parser.add_argument("--gif", type=str, default=None, help="Save generation frames as GIF")
    run_parser.add_argument("--frame-ms", type=int, default=300, help="GIF frame duration")
    run_parser.add_argument("-q", "--quiet", action="store_true", help="Only print the final score")
    run_parser.set_defaults(func=cmd_run)

    # Render command
    render_parser = subparsers.add_parser("render", help="Step a random rule and render the grid")
    add_grid_arguments(render_parser)
    render_parser.add_argument("--steps", type=int, default=defaults.steps_per_generation,
                               help="Simulation steps")
    render_parser.add_argument("--png", type=str, default=None, help="Save final state as PNG")
    render_parser.set_defaults(func=cmd_render)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
