"""Simulation driver: build a ring, replay random lookups, aggregate.

The driver owns the single :class:`AggregateStatistics` of a run and threads
it explicitly through construction and every lookup.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from .base import RouteTrace, format_id, hash_and_truncate
from .chord import Router
from .config import HASH_ALGORITHM, SimulationConfig
from .ring import OverlayBuilder, Ring
from .stats import AggregateStatistics

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    ring: Ring
    stats: AggregateStatistics
    traces: list


def simulate_routing(ring: Ring, stats: AggregateStatistics, queries: int,
                     rng: Optional[random.Random] = None,
                     algorithm: str = HASH_ALGORITHM) -> list[RouteTrace]:
    """Run *queries* lookups for random keys from shuffled starting nodes.

    Starting nodes are drawn without replacement from a shuffled copy of
    the ring, refilled once exhausted, so every node starts a lookup before
    any starts a second one.
    """
    if rng is None:
        rng = random.Random()
    router = Router(ring)
    starts: list[int] = []
    traces = []

    for _ in range(queries):
        if not starts:
            starts = ring.ids
            rng.shuffle(starts)
        key = hash_and_truncate(rng.randbytes(ring.bits), ring.bits, algorithm)
        start = starts.pop()
        logger.debug("searching %s from node %s (%s)",
                     format_id(key, ring.bits), ring.get(start).address,
                     format_id(start, ring.bits))
        trace = router.lookup(key, start)
        stats.add_trace(trace)
        traces.append(trace)

    logger.info("ran %d lookups, mean hops %.3f", len(traces), stats.avg_hops)
    return traces


def run_simulation(config: SimulationConfig,
                   hash_fn=None) -> SimulationResult:
    """Validate *config*, build the overlay and replay its lookups."""
    config.validate()
    rng = random.Random(config.seed)
    stats = AggregateStatistics()

    builder = OverlayBuilder(config.id_bits, config.num_nodes, rng=rng,
                             hash_fn=hash_fn,
                             algorithm=config.hash_algorithm,
                             max_collisions=config.max_collisions)
    ring = builder.build(stats)
    traces = simulate_routing(ring, stats, config.query_count, rng,
                              config.hash_algorithm)
    return SimulationResult(ring, stats, traces)
