"""Aggregate statistics over ring spacing and lookup traces.

Every derived figure is refreshed whenever a table changes, so a snapshot
taken between two updates is exact.  Spacing count, sum and sum of squares
are kept as running Python ints: distances in a 512-bit ring square to values
far beyond the range of a float, so only the final ratios are converted.
"""

import math
from collections import Counter

from .base import RouteTrace


def _weighted_mean(freq: Counter) -> float:
    size = sum(freq.values())
    if not size:
        return 0.0
    return sum(value * count for value, count in freq.items()) / size


def _weighted_std(freq: Counter, mean: float) -> float:
    size = sum(freq.values())
    if not size:
        return 0.0
    total = sum((value - mean) ** 2 * count for value, count in freq.items())
    return math.sqrt(total / size)


class AggregateStatistics:
    """Accumulator fed by ring construction and by every finished lookup."""

    def __init__(self):
        # distance to predecessor -> number of nodes
        self.distances: Counter = Counter()
        # hop count -> number of lookups
        self.hop_counts: Counter = Counter()
        # node id -> number of lookups it took part in (hop or end node)
        self.queries_per_node: Counter = Counter()
        # lookups served -> number of nodes that served exactly that many
        self.nodes_per_query_count: Counter = Counter()
        # node id -> number of lookups it answered
        self.end_nodes: Counter = Counter()
        # running integer sums over distances: count, sum, sum of squares
        self._spacing = [0, 0, 0]

        self.average_distance = 0.0
        self.std_dev_distance = 0.0
        self.avg_hops = 0.0
        self.std_dev_hops = 0.0
        self.avg_queries_per_node = 0.0

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_distance(self, distance: int):
        self.distances[distance] += 1
        self._add_spacing(1, distance, distance * distance)
        self._refresh_distances()

    def add_trace(self, trace: RouteTrace):
        if trace.end_node is None:
            raise ValueError("cannot aggregate an unresolved lookup")
        for node_id in trace.hops:
            self._count_query(node_id)
        self._count_query(trace.end_node)
        self.hop_counts[trace.hop_count] += 1
        self.end_nodes[trace.end_node] += 1
        self._refresh_queries()
        self._refresh_hops()

    def merge(self, other: "AggregateStatistics"):
        """Fold a partial aggregate built elsewhere into this one."""
        self.distances.update(other.distances)
        self._add_spacing(*other._spacing)
        self.hop_counts.update(other.hop_counts)
        self.queries_per_node.update(other.queries_per_node)
        self.nodes_per_query_count = Counter(self.queries_per_node.values())
        self.end_nodes.update(other.end_nodes)
        self._refresh_distances()
        self._refresh_queries()
        self._refresh_hops()

    def _count_query(self, node_id: int):
        """Move *node_id* from its served-count bucket k to k + 1."""
        served = self.queries_per_node[node_id]
        if served:
            self.nodes_per_query_count[served] -= 1
            if not self.nodes_per_query_count[served]:
                del self.nodes_per_query_count[served]
        self.queries_per_node[node_id] = served + 1
        self.nodes_per_query_count[served + 1] += 1

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def _add_spacing(self, size, total, squares):
        self._spacing[0] += size
        self._spacing[1] += total
        self._spacing[2] += squares

    def _refresh_distances(self):
        size, total, squares = self._spacing
        if not size:
            self.average_distance = self.std_dev_distance = 0.0
            return
        # size^2 * variance, exact
        spread = size * squares - total * total
        self.average_distance = total / size
        self.std_dev_distance = math.sqrt(spread / (size * size))

    def _refresh_queries(self):
        self.avg_queries_per_node = _weighted_mean(self.nodes_per_query_count)

    def _refresh_hops(self):
        self.avg_hops = _weighted_mean(self.hop_counts)
        self.std_dev_hops = _weighted_std(self.hop_counts, self.avg_hops)

    @property
    def end_node_count(self) -> int:
        return len(self.end_nodes)

    @property
    def lookups(self) -> int:
        return sum(self.hop_counts.values())

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> str:
        """Scalar summary followed by the three frequency tables, as CSV."""
        lines = [
            f"avg_queries_per_node,{self.avg_queries_per_node}",
            f"end_nodes,{self.end_node_count}",
            f"average_distance,{self.average_distance}",
            f"std_dev_distance,{self.std_dev_distance}",
            f"avg_hops_per_query,{self.avg_hops}",
            f"std_dev_hops_per_query,{self.std_dev_hops}",
            "",
            "distance,count",
        ]
        lines += [f"{d},{c}" for d, c in sorted(self.distances.items())]
        lines += ["", "query_number,nodes"]
        lines += [f"{q},{n}" for q, n in sorted(self.nodes_per_query_count.items())]
        lines += ["", "hops_per_query,times"]
        lines += [f"{h},{t}" for h, t in sorted(self.hop_counts.items())]
        return "\n".join(lines) + "\n"
