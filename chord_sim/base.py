"""Identifier-space primitives shared by the ring, the router and the stats.

Provides modular-ring arithmetic, the cyclic interval predicate used by every
routing decision, the hash-and-truncate placement function, and the
:class:`RouteTrace` record that a lookup fills in as it travels the ring.
"""

import hashlib
import math
from dataclasses import dataclass, field
from typing import Optional

from .config import HASH_ALGORITHM
from .errors import UnsupportedHashAlgorithm


# ---------------------------------------------------------------------------
# Identifier space
# ---------------------------------------------------------------------------

def modulus(bits: int) -> int:
    """Size of a *bits*-wide identifier space, 2^bits."""
    return 2 ** bits


def in_interval(right_closed: bool, key: int, left: int, right: int,
                wrap: int) -> bool:
    """Is *key* in the cyclic interval (left, right) or (left, right]?

    *wrap* is the point where the ring wraps around (the modulus).  When
    ``right < left`` the interval crosses it and is the union of
    (left, wrap) and [0, right) / [0, right].  Equal endpoints give an
    empty interval.
    """
    if right < left:
        if left < key < wrap:
            return True
        return key >= 0 and (key <= right if right_closed else key < right)
    return key > left and (key <= right if right_closed else key < right)


def format_id(node_id: int, bits: int) -> str:
    """Zero-padded lower-case hex rendering of an identifier."""
    return format(node_id, f"0{math.ceil(bits / 4)}x")


# ---------------------------------------------------------------------------
# Hash / truncate
# ---------------------------------------------------------------------------

def resolve_digest(algorithm: str = HASH_ALGORITHM):
    """Return a fresh hashlib object for *algorithm*.

    Raises :class:`UnsupportedHashAlgorithm` if this interpreter's hashlib
    cannot provide it.
    """
    try:
        return hashlib.new(algorithm)
    except (ValueError, TypeError) as exc:
        raise UnsupportedHashAlgorithm(algorithm) from exc


def hash_and_truncate(data: bytes, bits: int,
                      algorithm: str = HASH_ALGORITHM) -> int:
    """Hash *data* and keep the leading *bits* bits of the digest.

    Truncation works on hex nibbles, so the width is rounded up to a
    multiple of 4.  If the digest is not wider than that, it is returned
    whole.
    """
    h = resolve_digest(algorithm)
    h.update(data)
    digest = h.hexdigest()
    nibbles = math.ceil(bits / 4)
    if nibbles >= len(digest):
        return int(digest, 16)
    return int(digest[:nibbles], 16)


# ---------------------------------------------------------------------------
# Route trace
# ---------------------------------------------------------------------------

@dataclass
class RouteTrace:
    """Record of one lookup: where it started, where it went, who answered."""
    target: int
    start_node: int
    hops: list = field(default_factory=list)
    end_node: Optional[int] = None

    def add_hop(self, node_id: int):
        self.hops.append(node_id)

    def add_end_node(self, node_id: int):
        self.end_node = node_id

    @property
    def hop_count(self) -> int:
        return len(self.hops)

    @property
    def resolved(self) -> bool:
        return self.end_node is not None

    def to_dict(self, bits: int) -> dict:
        """Plain-data view of the trace with hex identifiers, for persistence."""
        return {
            "target_hash": format_id(self.target, bits),
            "start_node_id": format_id(self.start_node, bits),
            "end_node_id": (format_id(self.end_node, bits)
                            if self.end_node is not None else None),
            "hop_count": self.hop_count,
            "hops": [format_id(h, bits) for h in self.hops],
        }
