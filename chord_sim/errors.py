"""Exceptions raised by the Chord ring simulator.

Only configuration and construction failures are represented here.  A lookup
that cannot make progress on a ring built by :class:`~chord_sim.ring.Ring`
means the ring itself is broken, and is reported with ``AssertionError``.
"""


class ChordSimError(Exception):
    """Base class for every error the simulator raises on purpose."""


class InvalidConfiguration(ChordSimError, ValueError):
    """The identifier width or node count cannot describe a valid ring."""


class UnsupportedHashAlgorithm(ChordSimError):
    """The requested digest is not available in this interpreter."""

    def __init__(self, algorithm: str):
        super().__init__(f"hash algorithm {algorithm!r} is not available")
        self.algorithm = algorithm


class TooManyCollisions(ChordSimError):
    """The overlay builder could not place a new node within the retry limit."""

    def __init__(self, placed: int, wanted: int, attempts: int):
        super().__init__(
            f"gave up after {attempts} consecutive rejected placements "
            f"({placed}/{wanted} nodes placed)")
        self.placed = placed
        self.wanted = wanted
        self.attempts = attempts
