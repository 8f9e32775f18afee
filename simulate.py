"""Chord ring simulation driver.

Builds a ring of NODES nodes over a BITS-bit identifier space, runs one
lookup per node (or --queries lookups) and writes:

    <out>/topologies/<NODES>/<BITS>bit_<dd-MM_HHmmss>.csv   finger tables
    <out>/routing/<NODES>/<BITS>bit_<dd-MM_HHmmss>.csv      statistics
    <out>/traces/<NODES>/<BITS>bit_<dd-MM_HHmmss>.jsonl     (--traces)

Usage
-----
    python simulate.py 32 1000
    python simulate.py 16 500 --queries 5000 --seed 7 --traces
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

from benchmark import print_table
from chord_sim.config import DEFAULT_OUTPUT_DIR, LOG_FORMAT, SimulationConfig
from chord_sim.errors import ChordSimError
from chord_sim.simulation import run_simulation

logger = logging.getLogger("chord_sim.simulate")


# ──────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Simulate greedy lookups over a static Chord ring.")
    parser.add_argument("bits", type=int,
                        help="identifier size in bits (multiple of 4, <= 512)")
    parser.add_argument("nodes", type=int, help="number of nodes in the ring")
    parser.add_argument("--queries", type=int, default=None,
                        help="number of lookups (default: one per node)")
    parser.add_argument("--seed", type=int, default=None,
                        help="seed for node placement and search keys")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help="directory receiving topologies/ and routing/")
    parser.add_argument("--traces", action="store_true",
                        help="also write every lookup as a JSON line")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log every finger table and lookup")
    return parser.parse_args(argv)


def output_paths(out_dir, bits, nodes, now=None):
    """Return (topology, routing, traces) file paths for one run."""
    now = now or datetime.now()
    filename = f"{bits}bit_{now.strftime('%d-%m_%H%M%S')}"
    return tuple(
        os.path.join(out_dir, kind, str(nodes), filename + ext)
        for kind, ext in (("topologies", ".csv"), ("routing", ".csv"),
                          ("traces", ".jsonl"))
    )


def write_text(path, text):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", newline="") as f:
        f.write(text)


# ──────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format=LOG_FORMAT)

    config = SimulationConfig(id_bits=args.bits, num_nodes=args.nodes,
                              queries=args.queries, seed=args.seed)
    try:
        result = run_simulation(config)
    except ChordSimError as exc:
        logger.error("%s", exc)
        return 2

    topology_path, routing_path, traces_path = output_paths(
        args.output_dir, config.id_bits, config.num_nodes)
    write_text(topology_path, result.ring.topology_csv())
    write_text(routing_path, result.stats.render())
    if args.traces:
        write_text(traces_path, "".join(
            json.dumps(t.to_dict(config.id_bits)) + "\n" for t in result.traces))

    stats = result.stats
    sep = "=" * 70
    print(f"\n{sep}")
    print(f"  CHORD RING  b={config.id_bits}  N={config.num_nodes}  "
          f"lookups={stats.lookups}")
    print(sep)
    print_table(["Metric", "Mean", "Std dev"], [
        ["Hops per lookup", f"{stats.avg_hops:.3f}", f"{stats.std_dev_hops:.3f}"],
        ["Node spacing", f"{stats.average_distance:.6g}",
         f"{stats.std_dev_distance:.6g}"],
        ["Queries per node", f"{stats.avg_queries_per_node:.3f}", "-"],
    ], [20, 16, 16])
    print(f"\n  distinct end nodes: {stats.end_node_count}")
    print(f"  topology -> {topology_path}")
    print(f"  routing  -> {routing_path}")
    if args.traces:
        print(f"  traces   -> {traces_path}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
