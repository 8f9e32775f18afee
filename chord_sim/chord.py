"""Chord lookup routing over a static ring.

Reference
---------
Stoica et al., "Chord: A Scalable Peer-to-peer Lookup Service
for Internet Applications" (SIGCOMM 2001)

Key properties
--------------
- A node owns the keys in (predecessor, node]
- Lookups move strictly forward along the ring, never revisiting a node
- Each step jumps to the closest preceding finger, giving O(log N) hops
- Routing is driven from one loop by identifier, not by nodes calling nodes
"""

import logging
from enum import Enum, auto
from typing import Optional

from .base import RouteTrace, format_id, in_interval
from .ring import Node, Ring

logger = logging.getLogger(__name__)


class LookupState(Enum):
    ROUTING = auto()
    RESOLVED = auto()


class Router:

    def __init__(self, ring: Ring):
        self.ring = ring

    # ------------------------------------------------------------------
    # Core routing
    # ------------------------------------------------------------------

    def closest_preceding_node(self, node: Node, target: int) -> int:
        """Furthest finger of *node* strictly between it and *target*."""
        wrap = self.ring.modulus
        fingers = node.fingers
        for i in range(len(fingers) - 1, -1, -1):
            f = fingers.resolve(i)
            if in_interval(False, f, node.node_id, target, wrap):
                return f
        return node.successor

    def step(self, node: Node, target: int):
        """One routing decision at *node*.

        Returns ``(state, node_id, hop)``: the state after the step, the node
        that answers (``RESOLVED``) or should be asked next (``ROUTING``), and
        whether *node* counts as a hop.
        """
        wrap = self.ring.modulus
        if in_interval(True, target, node.predecessor, node.node_id, wrap):
            return LookupState.RESOLVED, node.node_id, False
        if in_interval(True, target, node.node_id, node.successor, wrap):
            return LookupState.RESOLVED, node.successor, True
        next_id = self.closest_preceding_node(node, target)
        if next_id == node.node_id:
            return LookupState.RESOLVED, node.node_id, True
        return LookupState.ROUTING, next_id, True

    def lookup(self, target: int, start: int,
               trace: Optional[RouteTrace] = None) -> RouteTrace:
        """Route *target* from node *start* until some node claims it."""
        if trace is None:
            trace = RouteTrace(target, start)

        current = self.ring.get(start)
        # every forward move is strictly closer to target, so N+1 steps suffice
        for _ in range(len(self.ring) + 1):
            state, node_id, hop = self.step(current, target)
            if hop:
                trace.add_hop(current.node_id)
            if state is LookupState.RESOLVED:
                trace.add_end_node(node_id)
                logger.debug("lookup %s from %s resolved at %s after %d hops",
                             format_id(target, self.ring.bits),
                             format_id(start, self.ring.bits),
                             format_id(node_id, self.ring.bits),
                             trace.hop_count)
                return trace
            current = self.ring.get(node_id)

        raise AssertionError(
            f"lookup for {format_id(target, self.ring.bits)} did not resolve "
            f"within {len(self.ring) + 1} steps")
