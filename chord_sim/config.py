"""
Constants and run configuration.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidConfiguration

# Number of bits in the identifier space when none is given (b)
DEFAULT_ID_BITS = 32

# Widest identifier space supported; SHA-512 yields 512 bits
MAX_ID_BITS = 512

# Consecutive rejected placements tolerated before giving up on the overlay
MAX_COLLISIONS = 500_000

# Digest used to place nodes and keys on the ring
HASH_ALGORITHM = "sha512"

# Log line layout used by the command-line driver
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Where simulate.py writes topologies/, routing/ and traces/
DEFAULT_OUTPUT_DIR = "."


@dataclass
class SimulationConfig:
    """Parameters of one simulation run."""
    id_bits: int = DEFAULT_ID_BITS
    num_nodes: int = 16
    queries: Optional[int] = None   # defaults to one lookup per node
    seed: Optional[int] = None
    hash_algorithm: str = HASH_ALGORITHM
    max_collisions: int = MAX_COLLISIONS

    @property
    def modulus(self) -> int:
        return 2 ** self.id_bits

    @property
    def query_count(self) -> int:
        return self.num_nodes if self.queries is None else self.queries

    def validate(self) -> "SimulationConfig":
        """Reject parameters that cannot produce a ring.

        Raises :class:`InvalidConfiguration` before any construction work
        starts, and :class:`UnsupportedHashAlgorithm` if the digest is missing.
        """
        from .base import resolve_digest

        if self.id_bits <= 0 or self.id_bits % 4 != 0:
            raise InvalidConfiguration(
                f"identifier size must be a positive multiple of 4, got {self.id_bits}")
        if self.id_bits > MAX_ID_BITS:
            raise InvalidConfiguration(
                f"identifier size must be at most {MAX_ID_BITS} bits, got {self.id_bits}")
        if self.num_nodes < 1:
            raise InvalidConfiguration(
                f"at least one node is required, got {self.num_nodes}")
        if self.num_nodes > self.modulus:
            raise InvalidConfiguration(
                f"{self.num_nodes} nodes do not fit in a {self.id_bits}-bit "
                f"identifier space")
        if self.queries is not None and self.queries < 0:
            raise InvalidConfiguration(
                f"query count cannot be negative, got {self.queries}")
        if self.max_collisions < 1:
            raise InvalidConfiguration(
                f"collision limit must be positive, got {self.max_collisions}")
        resolve_digest(self.hash_algorithm)
        return self
