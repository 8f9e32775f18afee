"""Chord routing benchmark.

Sweeps the ring size N over a fixed identifier width and prints hop-count,
load and spacing figures for each size, checked against log2(N).

Usage
-----
    python benchmark.py
"""

import math
import statistics
import time

from chord_sim.config import SimulationConfig
from chord_sim.simulation import run_simulation

ID_BITS = 32
SEED = 42
N_VALUES = [16, 64, 256, 1024]
QUERIES_PER_NODE = 4


# ──────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────

def hop_summary(traces):
    hops = sorted(t.hop_count for t in traces)
    n = len(hops)
    return {
        "mean":   statistics.mean(hops),
        "median": statistics.median(hops),
        "p95":    hops[int(n * 0.95)] if n > 1 else hops[0],
        "p99":    hops[int(n * 0.99)] if n > 1 else hops[0],
        "max":    hops[-1],
    }


def print_table(header, rows, widths=None):
    if widths is None:
        widths = [max(len(str(row[i])) for row in [header] + rows) + 2
                  for i in range(len(header))]
    print("  " + "".join(str(h).ljust(w) for h, w in zip(header, widths)))
    print("  " + "-" * sum(widths))
    for row in rows:
        print("  " + "".join(str(v).ljust(w) for v, w in zip(row, widths)))


# ──────────────────────────────────────────────────────────────────────
# Main benchmark
# ──────────────────────────────────────────────────────────────────────

def main():
    sep = "=" * 70
    print(f"\n{sep}")
    print(f"  CHORD ROUTING BENCHMARK  (b={ID_BITS}, seed={SEED})")
    print(sep)

    results = {}
    for n in N_VALUES:
        config = SimulationConfig(id_bits=ID_BITS, num_nodes=n,
                                  queries=n * QUERIES_PER_NODE, seed=SEED)
        t0 = time.perf_counter()
        results[n] = (run_simulation(config), time.perf_counter() - t0)

    # ── 1. Hop count vs N ─────────────────────────────────────────────
    print("\n  1. LOOKUP HOP COUNT vs RING SIZE\n")
    header = ["N", "Mean", "Median", "P95", "P99", "Max", "log2(N)"]
    rows = []
    for n, (result, _) in results.items():
        s = hop_summary(result.traces)
        rows.append([n, f"{s['mean']:.2f}", f"{s['median']:.1f}",
                     s["p95"], s["p99"], s["max"], f"{math.log2(n):.1f}"])
    print_table(header, rows, [8, 8, 8, 6, 6, 6, 10])

    # ── 2. Load and spacing ───────────────────────────────────────────
    print("\n  2. LOAD AND SPACING\n")
    header = ["N", "Queries/node", "End nodes", "Spacing CV", "Build+run"]
    rows = []
    for n, (result, elapsed) in results.items():
        stats = result.stats
        cv = stats.std_dev_distance / stats.average_distance
        rows.append([n, f"{stats.avg_queries_per_node:.2f}",
                     f"{stats.end_node_count}/{n}", f"{cv:.3f}",
                     f"{elapsed:.2f}s"])
    print_table(header, rows, [8, 14, 14, 12, 10])

    # ── Summary ───────────────────────────────────────────────────────
    print(f"\n{sep}")
    print("  SUMMARY")
    print(sep)
    print(f"\n  {'N':<8} {'Mean Hops':<11} vs log2(N)")
    print(f"  {'-'*30}")
    for n, (result, _) in results.items():
        mean = result.stats.avg_hops
        ok = "PASS" if mean <= math.log2(n) else "HIGH"
        print(f"  {n:<8} {mean:<11.2f} {ok}")
    print()


if __name__ == "__main__":
    main()
