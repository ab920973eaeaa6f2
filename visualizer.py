"""
Visualizer for NeuroGrid.

Produces:
  1. World snapshots  – wall grid with an agent's trail on top
  2. Evolution chart  – best / mean fitness + diversity over epochs
  3. Brain images     – activation and neuron-kind maps of a grid network
  4. CSV log          – per-epoch stats
"""

import os
import csv
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

from config import SAVE_DIR, LOG_CSV


# one colour per NeuronKind, in enum order
KIND_COLORS = [
    "#AAAAAA",   # REGULAR
    "#FF4444",   # INHIBITORY
    "#CC44FF",   # SINE
    "#6688AA",   # FIXED_WEIGHT
    "#44FF44",   # RELAY
    "#222222",   # DEAD
    "#FF88AA",   # MOTOR
    "#4499FF",   # SENSORY
    "#FFDD44",   # BLINKER
    "#FF8800",   # PAIN_RECEPTOR
    "#44FFAA",   # THRESHOLD
]


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    for sub in ("snapshots", "charts", "neural"):
        os.makedirs(os.path.join(base, sub), exist_ok=True)


def _dark(fig, ax):
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444444")


# ──────────────────────────────────────────────────────────────────────────────
# World snapshot
# ──────────────────────────────────────────────────────────────────────────────

def save_world_snapshot(world, epoch: int, trail: list = None,
                        base: str = SAVE_DIR, filename: str = None):
    """
    Render the wall grid. If given, `trail` ([(x, y), …]) is drawn as a
    line with the start in cyan and the end in red.
    """
    fig, ax = plt.subplots(figsize=(6, 6), dpi=100)
    _dark(fig, ax)
    ax.imshow(world.snapshot(), cmap=ListedColormap(["#111111", "#DDDDDD"]),
              origin="upper", interpolation="nearest",
              extent=(-0.5, world.width - 0.5, world.height - 0.5, -0.5))

    if trail:
        xs = [p[0] for p in trail]
        ys = [p[1] for p in trail]
        ax.plot(xs, ys, color="#FFDD44", linewidth=1.0, alpha=0.8)
        ax.scatter([xs[0]], [ys[0]], color="cyan", s=16, zorder=3)
        ax.scatter([xs[-1]], [ys[-1]], color="red", s=16, zorder=3)

    ax.set_title(f"Epoch {epoch}  ({100 * world.wall_fraction():.1f}% wall)",
                 color="white", fontsize=10)

    filename = filename or f"epoch_{epoch:06d}.png"
    path = os.path.join(base, "snapshots", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Evolution statistics chart
# ──────────────────────────────────────────────────────────────────────────────

def save_evolution_chart(stats: list, base: str = SAVE_DIR,
                         filename: str = "evolution.png"):
    """
    Plot best and mean fitness (left axis) and genetic diversity (right
    axis) across all epochs. Reinitialized epochs are marked in orange.
    """
    if not stats:
        return
    epochs    = [s["epoch"]     for s in stats]
    best      = [s["best"]      for s in stats]
    mean      = [s["mean"]      for s in stats]
    diversity = [s["diversity"] for s in stats]
    restarts  = [s["epoch"] for s in stats if s.get("policy") == "reinitialize"]

    fig, ax1 = plt.subplots(figsize=(12, 5), dpi=100)
    _dark(fig, ax1)

    ax1.plot(epochs, best, color="#44FF44", linewidth=1.2, label="Best", zorder=3)
    ax1.plot(epochs, mean, color="#4499FF", linewidth=1.0, label="Mean", zorder=2)
    for e in restarts:
        ax1.axvline(e, color="#FF8800", alpha=0.4, linewidth=0.8)
    ax1.set_ylabel("Fitness", color="white")
    ax1.set_ylim(0, max(1.0, max(best) * 1.05))
    ax1.set_xlabel("Epoch", color="white")

    ax2 = ax1.twinx()
    ax2.plot(epochs, diversity, color="#CC44FF", linewidth=1.0,
             linestyle="--", label="Diversity", zorder=2)
    ax2.set_ylabel("Genetic diversity (0–1)", color="white")
    ax2.set_ylim(0, 1.05)
    ax2.tick_params(colors="white")

    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax2.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2,
               facecolor="#222222", labelcolor="white",
               loc="lower right", fontsize=8)

    ax1.set_title("Evolutionary Progress", color="white", fontsize=12)
    plt.tight_layout()
    path = os.path.join(base, "charts", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Brain images
# ──────────────────────────────────────────────────────────────────────────────

def save_neural_diagram(network, epoch: int, label: str = "",
                        base: str = SAVE_DIR):
    """
    Two panels: the neuron kind of every cell, and its current activation
    (green positive, red negative).
    """
    fig, (ax_kind, ax_act) = plt.subplots(1, 2, figsize=(10, 5), dpi=100)
    for ax in (ax_kind, ax_act):
        _dark(fig, ax)
        ax.set_xticks([])
        ax.set_yticks([])

    ax_kind.imshow(network.kinds(), cmap=ListedColormap(KIND_COLORS),
                   vmin=0, vmax=len(KIND_COLORS) - 1, interpolation="nearest")
    ax_kind.set_title("Neuron kinds", color="white", fontsize=10)

    acts = network.activations()
    limit = max(1e-9, float(np.max(np.abs(acts))))
    ax_act.imshow(acts, cmap="RdYlGn", vmin=-limit, vmax=limit,
                  interpolation="nearest")
    ax_act.set_title("Activations", color="white", fontsize=10)

    present = [k for k, n in network.kind_counts().items() if n]
    fig.text(0.5, 0.02, "  ".join(present), color="#CCCCCC",
             ha="center", fontsize=7)
    fig.suptitle(f"Epoch {epoch} — Brain of {label}  ({network.rows}x{network.cols})",
                 color="white", fontsize=11)

    path = os.path.join(base, "neural", f"epoch_{epoch:06d}_{label}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(stats: dict, base: str = SAVE_DIR):
    """Append one epoch's stats to a CSV file."""
    if not LOG_CSV:
        return
    path = os.path.join(base, "evolution_log.csv")
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(stats.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(stats)
