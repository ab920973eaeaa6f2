"""
NeuroGrid – Main Entry Point
============================

Usage examples:
  python main.py                                  # defaults from config.py
  python main.py --epochs 50 --genes 40           # longer run, bigger pool
  python main.py --brain_x 6 --brain_y 6          # smaller brains
  python main.py --world_width 40 --world_height 40 --rooms 1
  python main.py --workers 4 --seed 7             # parallel, reproducible
"""

import argparse

from config import GeneticWorldParams, SAVE_DIR
from genetic_world import GeneticWorldRun
from visualizer import (ensure_dirs, save_world_snapshot,
                        save_evolution_chart, save_neural_diagram,
                        append_csv)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

# flag → (params field, type, help)
_OPTIONS = [
    ("--brain_x",       "brain_size_x",         int,   "Brain grid rows"),
    ("--brain_y",       "brain_size_y",         int,   "Brain grid columns"),
    ("--genes",         "num_genes",            int,   "Genomes in the pool"),
    ("--mutation",      "mutation_rate",        float, "Mutation rate per bit"),
    ("--elite",         "elite_size",           int,   "Genomes kept unchanged per epoch"),
    ("--epochs",        "num_epochs",           int,   "Number of epochs to run"),
    ("--new_gene_prob", "new_gene_probability", float, "Chance a child is a fresh random genome"),
    ("--world_width",   "world_width",          int,   "World width in cells"),
    ("--world_height",  "world_height",         int,   "World height in cells"),
    ("--wall_density",  "wall_density",         float, "Chance a free cell becomes a wall"),
    ("--rooms",         "num_rooms",            int,   "Rooms per world"),
    ("--random_walls",  "num_random_walls",     int,   "Diagonal walls per world"),
    ("--moves",         "num_moves_per_test",   int,   "Simulation steps per world test"),
    ("--worlds_tested", "num_worlds_to_test",   int,   "Worlds each genome is scored in"),
    ("--idle_cost",     "cost_of_not_moving",   float, "Penalty per step without movement"),
    ("--error_weight",  "error_weight",         float, "Penalty per step on a wall"),
    ("--min_score",     "min_score",            float, "Scores below this count as zero"),
    ("--pruning",       "pruning_rate",         float, "Chance a child gene becomes a dead neuron"),
    ("--learning_rate", "learning_rate",        float, "Default brain learning rate"),
    ("--worlds",        "num_worlds",           int,   "World templates generated per run"),
    ("--min_room",      "min_room_size",        int,   "Smallest room / wall length"),
    ("--max_room",      "max_room_size",        int,   "Largest room / wall length"),
    ("--tournament",    "tournament_size",      int,   "Genomes sampled per parent pick"),
    ("--workers",       "max_workers",          int,   "Threads used to score genomes"),
]


def parse_args(argv=None):
    defaults = GeneticWorldParams()
    p = argparse.ArgumentParser(description="NeuroGrid – evolve grid brains that navigate walled worlds")
    for flag, field, kind, text in _OPTIONS:
        p.add_argument(flag, dest=field, type=kind, default=getattr(defaults, field),
                       help=f"{text} (default: {getattr(defaults, field)})")
    p.add_argument("--seed",   type=int, default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir", default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--quiet",  action="store_true",
                   help="Do not print per-epoch stats")
    return p.parse_args(argv)


def params_from_args(args) -> GeneticWorldParams:
    data = {field: getattr(args, field) for _, field, _, _ in _OPTIONS}
    data["seed"] = args.seed
    return GeneticWorldParams.from_dict(data)


# ──────────────────────────────────────────────────────────────────────────────
# Callbacks
# ──────────────────────────────────────────────────────────────────────────────

class RunCallbacks:
    """Bundles the per-epoch callbacks used by the run."""

    def __init__(self, outdir: str, all_stats: list):
        self.outdir    = outdir
        self.all_stats = all_stats

    def on_epoch(self, epoch, stats):
        self.all_stats.append(stats)
        append_csv(stats, self.outdir)

        # Chart update every 10 epochs
        if epoch % 10 == 0 and epoch > 0:
            save_evolution_chart(self.all_stats, self.outdir)


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    try:
        params = params_from_args(args)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}")
    ensure_dirs(args.outdir)

    print("=" * 60)
    print("  NeuroGrid – Evolving Grid Brains")
    print("=" * 60)
    print(f"  Brain      : {params.brain_size_x}x{params.brain_size_y} neurons")
    print(f"  Pool       : {params.num_genes} genomes (elite {params.elite_size})")
    print(f"  Epochs     : {params.num_epochs}")
    print(f"  World      : {params.world_width}x{params.world_height}, "
          f"{params.num_rooms} rooms, {params.num_random_walls} walls")
    print(f"  Tests      : {params.num_worlds_to_test} worlds x "
          f"{params.num_moves_per_test} moves")
    print(f"  Mutation   : {params.mutation_rate}  pruning {params.pruning_rate}")
    print(f"  Workers    : {params.max_workers}")
    print(f"  Seed       : {params.seed}")
    print(f"  Output dir : {args.outdir}")
    print("=" * 60)

    all_stats = []
    cb = RunCallbacks(args.outdir, all_stats)

    run = GeneticWorldRun(params, on_epoch_complete=cb.on_epoch,
                          verbose=not args.quiet)
    try:
        run.setup(start=False)
    except KeyboardInterrupt:
        run.cancel()
        print("\n  !! Interrupted.")

    # Final chart
    print("\nSaving final evolution chart …")
    chart_path = save_evolution_chart(all_stats, args.outdir, "evolution_final.png")
    print(f"  → {chart_path}")

    driver = run.driver
    if driver is not None and driver.best_genome is not None:
        print(f"\nBest score: {driver.best_score:.3f}")
        print(driver.best_network.summary())

        snap = save_world_snapshot(driver.worlds[0], driver.epoch,
                                   driver.best_trail, args.outdir, "best_trail.png")
        print(f"  → Best trail: {snap}")

        if run.simulation is not None:
            run.iterate(params.num_moves_per_test)
            npath = save_neural_diagram(run.network, driver.epoch, "best", args.outdir)
            print(f"  → Neural diagram: {npath}")

    print("\nDone! All outputs saved to:", args.outdir)
    return run


if __name__ == "__main__":
    main()
