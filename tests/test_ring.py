"""Ring construction tests: identifier space, placement, finger tables.

Run:  pytest tests/ -v -s
"""

import hashlib
import random

import pytest

from chord_sim.base import format_id, hash_and_truncate, in_interval, modulus
from chord_sim.errors import TooManyCollisions, UnsupportedHashAlgorithm
from chord_sim.ring import (
    USE_SUCCESSOR,
    FingerTable,
    Node,
    OverlayBuilder,
    Present,
    Ring,
)
from chord_sim.stats import AggregateStatistics

ID_BITS = 16
SCENARIO_IDS = [10, 80, 150, 220]


# ──────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────

def build_ring(num_nodes, id_bits=ID_BITS, seed=42):
    stats = AggregateStatistics()
    builder = OverlayBuilder(id_bits, num_nodes, rng=random.Random(seed))
    return builder.build(stats), stats


# ──────────────────────────────────────────────────────────────────────
# 1. Identifier space
# ──────────────────────────────────────────────────────────────────────

def test_modulus():
    assert modulus(8) == 256
    assert modulus(512) == 1 << 512


@pytest.mark.parametrize("right_closed,key,left,right,expected", [
    # straight interval (10, 80]
    (True, 50, 10, 80, True),
    (True, 80, 10, 80, True),
    (False, 80, 10, 80, False),
    (True, 10, 10, 80, False),
    (True, 90, 10, 80, False),
    (False, 11, 10, 80, True),
    # wrapping interval (220, 10]
    (True, 230, 220, 10, True),
    (True, 255, 220, 10, True),
    (True, 0, 220, 10, True),
    (True, 10, 220, 10, True),
    (False, 10, 220, 10, False),
    (False, 9, 220, 10, True),
    (True, 220, 220, 10, False),
    (True, 100, 220, 10, False),
    # equal endpoints describe an empty interval
    (True, 5, 5, 5, False),
    (True, 6, 5, 5, False),
    (False, 4, 5, 5, False),
])
def test_in_interval(right_closed, key, left, right, expected):
    assert in_interval(right_closed, key, left, right, 256) is expected


def test_format_id_pads_to_width():
    assert format_id(10, 8) == "0a"
    assert format_id(10, 16) == "000a"
    assert len(format_id(1, 512)) == 128


# ──────────────────────────────────────────────────────────────────────
# 2. Hash / truncate
# ──────────────────────────────────────────────────────────────────────

def test_truncate_keeps_leading_bits():
    data = b"10.0.0.1:4000"
    digest = hashlib.sha512(data).hexdigest()
    for bits in (4, 8, 32, 160):
        value = hash_and_truncate(data, bits)
        assert value == int(digest[:bits // 4], 16)
        assert 0 <= value < 2 ** bits


def test_truncate_is_deterministic():
    assert hash_and_truncate(b"key", 64) == hash_and_truncate(b"key", 64)
    assert hash_and_truncate(b"key", 64) != hash_and_truncate(b"kez", 64)


@pytest.mark.parametrize("bits", [512, 600, 1024])
def test_truncate_wider_than_digest_returns_digest(bits):
    data = b"whole digest"
    assert hash_and_truncate(data, bits) == int(hashlib.sha512(data).hexdigest(), 16)


def test_truncate_other_digest():
    data = b"abc"
    assert hash_and_truncate(data, 160, "sha1") == int(hashlib.sha1(data).hexdigest(), 16)
    assert hash_and_truncate(data, 16, "sha1") == int(hashlib.sha1(data).hexdigest()[:4], 16)


def test_unknown_digest_is_rejected():
    with pytest.raises(UnsupportedHashAlgorithm):
        hash_and_truncate(b"x", 8, "no-such-digest")


# ──────────────────────────────────────────────────────────────────────
# 3. Overlay construction
# ──────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("num_nodes", [1, 2, 10, 200])
def test_ring_forms_single_cycle(num_nodes):
    ring, _ = build_ring(num_nodes)
    ids = ring.ids
    assert len(ids) == num_nodes
    assert ids == sorted(set(ids))

    start = ring.get(ids[0])
    node = start
    seen = []
    for _ in range(num_nodes):
        seen.append(node.node_id)
        assert ring.get(node.successor).predecessor == node.node_id
        node = ring.get(node.successor)
    assert node is start
    assert sorted(seen) == ids


def test_neighbours_follow_sorted_order():
    ring, _ = build_ring(50)
    ids = ring.ids
    for k, node_id in enumerate(ids):
        node = ring.get(node_id)
        assert node.successor == ids[(k + 1) % len(ids)]
        assert node.predecessor == ids[k - 1]


def test_spacing_covers_whole_ring():
    ring, stats = build_ring(100)
    assert sum(stats.distances.values()) == 100
    assert sum(d * c for d, c in stats.distances.items()) == ring.modulus
    assert all(d > 0 for d in stats.distances)


def test_addresses_look_like_endpoints():
    ring, _ = build_ring(20)
    addresses = [node.address for node in ring]
    assert len(set(addresses)) == 20
    for address in addresses:
        host, port = address.rsplit(":", 1)
        assert 0 <= int(port) < 65536
        octets = [int(o) for o in host.split(".")]
        assert len(octets) == 4 and all(0 <= o < 256 for o in octets)


def test_same_seed_same_ring():
    first, _ = build_ring(30, seed=7)
    second, _ = build_ring(30, seed=7)
    assert first.ids == second.ids


def test_full_identifier_space():
    """b=4, N=16 must fill every identifier."""
    ring, stats = build_ring(16, id_bits=4, seed=3)
    assert ring.ids == list(range(16))
    assert stats.distances == {1: 16}


def test_constant_hash_gives_up():
    builder = OverlayBuilder(8, 2, rng=random.Random(1),
                             hash_fn=lambda data, bits: 7,
                             max_collisions=1000)
    with pytest.raises(TooManyCollisions) as info:
        builder.build()
    assert info.value.placed == 1
    assert info.value.attempts == 1000


def test_duplicate_id_is_rejected():
    ring = Ring(8)
    ring.add(Node(10, "a"))
    with pytest.raises(ValueError):
        ring.add(Node(10, "b"))
    with pytest.raises(ValueError):
        ring.add(Node(256, "c"))


def test_single_node_ring_points_at_itself():
    stats = AggregateStatistics()
    ring = Ring.from_ids([42], 8, stats)
    node = ring.get(42)
    assert node.successor == node.predecessor == 42
    assert node.fingers.resolved() == [42] * 8
    assert stats.distances == {256: 1}


# ──────────────────────────────────────────────────────────────────────
# 4. Finger tables
# ──────────────────────────────────────────────────────────────────────

def test_nearest_wraps_past_largest_id():
    ring = Ring.from_ids(SCENARIO_IDS, 8)
    assert ring.nearest(10) == 10
    assert ring.nearest(11) == 80
    assert ring.nearest(221) == 10
    assert ring.nearest(0) == 10


def test_scenario_finger_tables():
    ring = Ring.from_ids(SCENARIO_IDS, 8)

    fingers = ring.get(10).fingers
    assert fingers[0] == Present(80)
    assert list(fingers)[1:7] == [USE_SUCCESSOR] * 6
    assert fingers[7] == Present(150)
    assert fingers.resolved() == [80] * 7 + [150]

    assert ring.get(220).fingers.resolved() == [10] * 6 + [80, 150]
    assert ring.get(220).fingers.present_count() == 3


def test_finger_zero_is_successor():
    ring, _ = build_ring(100)
    for node in ring:
        assert node.fingers[0] == Present(node.successor)
        assert node.fingers.resolve(0) == node.successor


def test_compression_is_lossless():
    ring, _ = build_ring(100)
    for node in ring:
        assert len(node.fingers) == ID_BITS
        for i in range(ID_BITS):
            target = (node.node_id + (1 << i)) % ring.modulus
            assert node.fingers.resolve(i) == ring.nearest(target)
            if i > 0 and ring.nearest(target) == node.successor:
                assert node.fingers[i] is USE_SUCCESSOR


def test_compression_saves_space():
    ring, _ = build_ring(100)
    stored = [node.fingers.present_count() for node in ring]
    print(f"\n  stored fingers per node (N=100, b={ID_BITS}): "
          f"mean={sum(stored) / len(stored):.1f}  max={max(stored)}")
    assert max(stored) < ID_BITS


def test_finger_table_needs_successor():
    with pytest.raises(ValueError):
        FingerTable([USE_SUCCESSOR, Present(3)])


# ──────────────────────────────────────────────────────────────────────
# 5. Topology export
# ──────────────────────────────────────────────────────────────────────

def test_topology_csv_rows():
    ring = Ring.from_ids(SCENARIO_IDS, 8)
    lines = ring.topology_csv().splitlines()
    assert len(lines) == 4 * 8
    assert lines[:8] == ["0a,50"] * 7 + ["0a,96"]
    assert lines[-1] == "dc,96"
    assert [line.split(",")[0] for line in lines[::8]] == ["0a", "50", "96", "dc"]
