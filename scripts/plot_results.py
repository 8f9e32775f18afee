"""Chord simulation report figures.

Reads the CSV files written by simulate.py and produces static plots:
hop-count distribution, queries-per-node distribution, node-spacing
distribution and (given a topology file) distinct fingers per node.

Run from project root:
    python scripts/plot_results.py routing/1000/32bit_01-01_120000.csv \
        topologies/1000/32bit_01-01_120000.csv

Output: figures/*.png (created in ./figures/)
"""

import argparse
import os
from collections import defaultdict

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

sns.set_theme(style="whitegrid", font_scale=1.1)

FIGURES_DIR = "figures"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def read_routing(path: str):
    """Return (scalars, tables) from a statistics export.

    scalars maps name -> float; tables maps the header of each frequency
    table (e.g. "hops_per_query,times") to a list of (key, count) pairs.
    """
    scalars: dict[str, float] = {}
    tables: dict[str, list[tuple[int, int]]] = {}
    current = None
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line:
                current = None
                continue
            left, right = line.split(",", 1)
            if current is None and not _is_number(right):
                current = line
                tables[current] = []
            elif current is None:
                scalars[left] = float(right)
            else:
                tables[current].append((int(left), int(right)))
    return scalars, tables


def read_topology(path: str) -> dict[str, set[str]]:
    """Node hex id -> set of distinct finger targets."""
    fingers: dict[str, set[str]] = defaultdict(set)
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line:
                node, target = line.split(",")
                fingers[node].add(target)
    return fingers


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _expand(pairs):
    """Frequency pairs -> flat sample array."""
    if not pairs:
        return np.array([])
    keys, counts = zip(*pairs)
    return np.repeat(np.array(keys, dtype=float), counts)


# ---------------------------------------------------------------------------
# Plots
# ---------------------------------------------------------------------------
def plot_frequency(pairs, out_path: str, xlabel: str, ylabel: str, title: str,
                   mean: float = None):
    fig, ax = plt.subplots(figsize=(6, 4))
    if pairs:
        keys, counts = zip(*pairs)
        ax.bar(keys, counts, color="steelblue", edgecolor="navy", alpha=0.8)
    if mean is not None:
        ax.axvline(mean, linestyle="--", color="gray", linewidth=1.5,
                   label=f"mean = {mean:.2f}")
        ax.legend()
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def plot_spacing(pairs, out_path: str):
    """Histogram of node-to-predecessor distances, log-scaled when wide."""
    samples = _expand(pairs)
    fig, ax = plt.subplots(figsize=(6, 4))
    if samples.size:
        ax.hist(samples, bins=min(50, max(10, samples.size // 10)),
                color="C0", alpha=0.8)
        ax.axvline(samples.mean(), linestyle="--", color="gray",
                   label=f"mean = {samples.mean():.3g}")
        ax.legend()
    ax.set_xlabel("Distance to predecessor (identifiers)")
    ax.set_ylabel("Nodes")
    ax.set_title("Ring spacing distribution")
    fig.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def plot_finger_degree(fingers: dict[str, set[str]], out_path: str):
    degrees = np.array([len(t) for t in fingers.values()])
    fig, ax = plt.subplots(figsize=(6, 4))
    if degrees.size:
        values, counts = np.unique(degrees, return_counts=True)
        ax.bar(values, counts, color="steelblue", edgecolor="navy", alpha=0.8)
        ax.set_xticks(values)
        n = len(fingers)
        ax.axvline(np.log2(n) if n > 1 else 1, linestyle="--", color="gray",
                   label=r"$\log_2 N$")
        ax.legend()
    ax.set_xlabel("Distinct finger targets")
    ax.set_ylabel("Nodes")
    ax.set_title("Finger-table out-degree")
    fig.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("routing", help="statistics CSV written by simulate.py")
    parser.add_argument("topology", nargs="?",
                        help="topology CSV written by simulate.py")
    parser.add_argument("--out", default=FIGURES_DIR)
    args = parser.parse_args(argv)

    os.makedirs(args.out, exist_ok=True)
    base = os.path.join(args.out, "chord")

    print(f"Reading {args.routing}...")
    scalars, tables = read_routing(args.routing)
    print("Generating plots...")
    plot_frequency(tables.get("hops_per_query,times", []), f"{base}_hops.png",
                   "Hops per lookup", "Lookups", "Lookup hop-count distribution",
                   mean=scalars.get("avg_hops_per_query"))
    print(f"  Saved {base}_hops.png")
    plot_frequency(tables.get("query_number,nodes", []), f"{base}_load.png",
                   "Lookups served", "Nodes", "Queries served per node",
                   mean=scalars.get("avg_queries_per_node"))
    print(f"  Saved {base}_load.png")
    plot_spacing(tables.get("distance,count", []), f"{base}_spacing.png")
    print(f"  Saved {base}_spacing.png")

    if args.topology:
        plot_finger_degree(read_topology(args.topology), f"{base}_fingers.png")
        print(f"  Saved {base}_fingers.png")
    print("Done.")


if __name__ == "__main__":
    main()
