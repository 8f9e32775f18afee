"""Static Chord ring: node placement, neighbour links and finger tables.

Key properties
--------------
- Nodes are placed by hashing a synthetic ``"A.B.C.D:port"`` endpoint
- The ring keeps identifiers sorted, so nearest-successor queries are
  O(log N) via bisect
- Finger tables store only entries that differ from the successor; the
  rest are kept as :data:`USE_SUCCESSOR` and resolved on read
- The ring is built once and never changes afterwards
"""

import logging
import random
from bisect import bisect_left, insort
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

from .base import format_id, hash_and_truncate, modulus
from .config import HASH_ALGORITHM, MAX_COLLISIONS
from .errors import TooManyCollisions

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Finger-table entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Present:
    """A finger that points somewhere other than the successor."""
    node_id: int


class _UseSuccessor:
    """Marker for a finger whose target is the node's successor."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "USE_SUCCESSOR"


USE_SUCCESSOR = _UseSuccessor()

FingerEntry = Union[Present, _UseSuccessor]


class FingerTable:
    """Compressed finger table of one node.

    Entry 0 is always :class:`Present` and holds the successor.  Any later
    entry equal to it is stored as :data:`USE_SUCCESSOR`; :meth:`resolve`
    is the only way to read an identifier back out.
    """

    def __init__(self, entries: list):
        if not entries or not isinstance(entries[0], Present):
            raise ValueError("finger 0 must hold the successor")
        self._entries = list(entries)

    @classmethod
    def compress(cls, targets: list) -> "FingerTable":
        """Build a table from uncompressed finger identifiers."""
        successor = targets[0]
        entries = [Present(successor)]
        for node_id in targets[1:]:
            entries.append(USE_SUCCESSOR if node_id == successor
                           else Present(node_id))
        return cls(entries)

    @property
    def successor(self) -> int:
        return self._entries[0].node_id

    def resolve(self, i: int) -> int:
        entry = self._entries[i]
        if entry is USE_SUCCESSOR:
            return self.successor
        return entry.node_id

    def resolved(self) -> list:
        return [self.resolve(i) for i in range(len(self._entries))]

    def present_count(self) -> int:
        """Number of entries actually stored (not delegated to finger 0)."""
        return sum(1 for e in self._entries if e is not USE_SUCCESSOR)

    def __getitem__(self, i: int) -> FingerEntry:
        return self._entries[i]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FingerEntry]:
        return iter(self._entries)


# ---------------------------------------------------------------------------
# Nodes and the ring
# ---------------------------------------------------------------------------

@dataclass
class Node:
    """One simulated endpoint.

    ``predecessor`` and ``successor`` are identifiers resolved through the
    owning :class:`Ring`, not references to other nodes.
    """
    node_id: int
    address: str
    predecessor: Optional[int] = None
    successor: Optional[int] = None
    fingers: Optional[FingerTable] = None


class Ring:
    """Sorted, circular arrangement of nodes over a 2^bits identifier space."""

    def __init__(self, bits: int):
        self.bits = bits
        self.modulus = modulus(bits)
        self._ids: list[int] = []
        self._nodes: dict[int, Node] = {}

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        for node_id in self._ids:
            yield self._nodes[node_id]

    @property
    def ids(self) -> list[int]:
        return list(self._ids)

    def get(self, node_id: int) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise AssertionError(
                f"no node with id {format_id(node_id, self.bits)} on the ring"
            ) from None

    def add(self, node: Node):
        if node.node_id in self._nodes:
            raise ValueError(
                f"node id {format_id(node.node_id, self.bits)} already on the ring")
        if not 0 <= node.node_id < self.modulus:
            raise ValueError(
                f"node id {node.node_id} outside the {self.bits}-bit space")
        insort(self._ids, node.node_id)
        self._nodes[node.node_id] = node

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def nearest(self, target: int) -> int:
        """First node id at or after *target*, wrapping to the smallest."""
        if not self._ids:
            raise AssertionError("nearest() on an empty ring")
        idx = bisect_left(self._ids, target)
        if idx == len(self._ids):
            idx = 0
        return self._ids[idx]

    def responsible_for(self, key: int) -> int:
        """Ground truth: id of the node that owns *key*."""
        return self.nearest(key % self.modulus)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def link(self, stats=None):
        """Wire predecessor/successor links in ascending order.

        Each node's distance to its predecessor is recorded in *stats*; the
        first node's predecessor is the last one, so its raw difference is
        shifted by the modulus.
        """
        if not self._ids:
            return
        prev = self._nodes[self._ids[-1]]
        for count, node_id in enumerate(self._ids):
            node = self._nodes[node_id]
            distance = node_id - prev.node_id
            if count == 0:
                distance += self.modulus
            if stats is not None:
                stats.add_distance(distance)
            prev.successor = node_id
            node.predecessor = prev.node_id
            prev = node
        logger.info("linked %d nodes into a %d-bit ring", len(self), self.bits)

    def finger_targets(self, node_id: int) -> list[int]:
        """Uncompressed finger table of *node_id*: successor of id + 2^i."""
        return [self.nearest((node_id + (1 << i)) % self.modulus)
                for i in range(self.bits)]

    def build_finger_tables(self):
        for count, node in enumerate(self, start=1):
            logger.debug("generating finger table #%d for %s",
                         count, format_id(node.node_id, self.bits))
            node.fingers = FingerTable.compress(self.finger_targets(node.node_id))

    @classmethod
    def from_ids(cls, ids, bits: int, stats=None) -> "Ring":
        """Build a fully linked ring over known identifiers."""
        ring = cls(bits)
        for node_id in ids:
            ring.add(Node(node_id, f"node-{format_id(node_id, bits)}"))
        ring.link(stats)
        ring.build_finger_tables()
        return ring

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def topology_csv(self) -> str:
        """One ``node,finger`` line per finger, in ring then finger order."""
        lines = []
        for node in self:
            name = format_id(node.node_id, self.bits)
            for target in node.fingers.resolved():
                lines.append(f"{name},{format_id(target, self.bits)}\n")
        return "".join(lines)


# ---------------------------------------------------------------------------
# Overlay builder
# ---------------------------------------------------------------------------

HashFn = Callable[[bytes, int], int]


class OverlayBuilder:
    """Places *num_nodes* hashed endpoints on a ring and wires it up."""

    def __init__(self, bits: int, num_nodes: int,
                 rng: Optional[random.Random] = None,
                 hash_fn: Optional[HashFn] = None,
                 algorithm: str = HASH_ALGORITHM,
                 max_collisions: int = MAX_COLLISIONS):
        self.bits = bits
        self.num_nodes = num_nodes
        self.rng = rng if rng is not None else random.Random()
        if hash_fn is None:
            def hash_fn(data, width):
                return hash_and_truncate(data, width, algorithm)
        self.hash_fn = hash_fn
        self.max_collisions = max_collisions

    def random_endpoint(self) -> str:
        r = self.rng
        return (f"{r.randrange(256)}.{r.randrange(256)}."
                f"{r.randrange(256)}.{r.randrange(256)}:{r.randrange(65536)}")

    def place_nodes(self) -> Ring:
        ring = Ring(self.bits)
        generated: set[str] = set()
        rejections = 0

        while len(ring) < self.num_nodes:
            if rejections >= self.max_collisions:
                raise TooManyCollisions(len(ring), self.num_nodes, rejections)

            endpoint = self.random_endpoint()
            if endpoint in generated:
                rejections += 1
                continue

            node_id = self.hash_fn(endpoint.encode(), self.bits)
            if node_id in ring:
                logger.debug("collision on %s for %s",
                             format_id(node_id, self.bits), endpoint)
                rejections += 1
                continue

            rejections = 0
            generated.add(endpoint)
            ring.add(Node(node_id, endpoint))

        logger.info("placed %d nodes", len(ring))
        return ring

    def build(self, stats=None) -> Ring:
        """Place, link and equip every node with its finger table."""
        ring = self.place_nodes()
        ring.link(stats)
        ring.build_finger_tables()
        return ring
