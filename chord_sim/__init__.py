"""Chord ring simulator.

Builds a static Chord overlay with compressed finger tables, replays random
lookups over it and aggregates hop-count, load and spacing statistics.
"""

from .base import RouteTrace, format_id, hash_and_truncate, in_interval, modulus
from .chord import LookupState, Router
from .config import SimulationConfig
from .errors import (
    ChordSimError,
    InvalidConfiguration,
    TooManyCollisions,
    UnsupportedHashAlgorithm,
)
from .ring import USE_SUCCESSOR, FingerTable, Node, OverlayBuilder, Present, Ring
from .simulation import SimulationResult, run_simulation, simulate_routing
from .stats import AggregateStatistics

__all__ = [
    "AggregateStatistics",
    "ChordSimError",
    "FingerTable",
    "InvalidConfiguration",
    "LookupState",
    "Node",
    "OverlayBuilder",
    "Present",
    "Ring",
    "RouteTrace",
    "Router",
    "SimulationConfig",
    "SimulationResult",
    "TooManyCollisions",
    "USE_SUCCESSOR",
    "UnsupportedHashAlgorithm",
    "format_id",
    "hash_and_truncate",
    "in_interval",
    "modulus",
    "run_simulation",
    "simulate_routing",
]
