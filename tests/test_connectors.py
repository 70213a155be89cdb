"""Connector vector and tile catalog tests."""

import itertools
import random

import pytest

import loop_core

ALL_VECTORS = list(itertools.product((0, 1), repeat=4))


def test_rotate_identity():
    """Rotation 0 leaves every vector unchanged."""
    for v in ALL_VECTORS:
        assert loop_core.rotate(v, 0) == v


def test_rotate_moves_north_to_east():
    """One quarter turn clockwise moves the north connector east."""
    assert loop_core.rotate((1, 0, 0, 0), 1) == (0, 1, 0, 0)
    assert loop_core.rotate((1, 1, 0, 0), 3) == (1, 0, 0, 1)


def test_rotate_composability():
    """rotate(rotate(v, a), b) == rotate(v, (a + b) % 4)."""
    for v in ALL_VECTORS:
        for a in range(4):
            for b in range(4):
                assert loop_core.rotate(loop_core.rotate(v, a), b) == loop_core.rotate(v, (a + b) % 4)


def test_mirror_connectors_swaps_sides():
    """Direction 0 swaps east/west, direction 1 swaps north/south."""
    assert loop_core.mirror_connectors((1, 1, 0, 0), 0) == (1, 0, 0, 1)
    assert loop_core.mirror_connectors((1, 1, 0, 0), 1) == (0, 1, 1, 0)


def test_mirror_connectors_twice_is_identity():
    for v in ALL_VECTORS:
        for direction in (0, 1):
            assert loop_core.mirror_connectors(loop_core.mirror_connectors(v, direction), direction) == v


def test_mirror_connectors_invalid_direction():
    with pytest.raises(ValueError, match="direction"):
        loop_core.mirror_connectors((1, 0, 0, 0), 2)


def test_opposite():
    assert [loop_core.opposite(s) for s in loop_core.SIDES] == [2, 3, 0, 1]


def test_catalog_contents():
    """The six variants carry their canonical N, E, S, W connectors."""
    expected = {
        "empty": (0, 0, 0, 0),
        "end": (1, 0, 0, 0),
        "curve": (1, 1, 0, 0),
        "straight": (1, 0, 1, 0),
        "branch": (1, 1, 1, 0),
        "cross": (1, 1, 1, 1),
    }
    assert {name: v.connectors for name, v in loop_core.VARIANTS.items()} == expected
    assert all(v.weight >= 0 for v in loop_core.VARIANTS.values())


def test_get_variant_unknown():
    with pytest.raises(KeyError):
        loop_core.get_variant("spiral")


def test_tile_weight_overrides():
    assert loop_core.get_tile_weight("cross") == pytest.approx(0.4)
    assert loop_core.get_tile_weight("cross", {"cross": 2}) == pytest.approx(2.0)
    assert loop_core.get_tile_weight("end", {"cross": 2}) == pytest.approx(0.25)


def test_tile_weight_negative():
    with pytest.raises(ValueError, match=">= 0"):
        loop_core.get_tile_weight("end", {"end": -1})


def test_distinct_rotations():
    """Symmetric shapes only expose rotations with distinct connectors."""
    rotations = {name: loop_core.distinct_rotations(v) for name, v in loop_core.VARIANTS.items()}
    assert rotations["empty"] == [0]
    assert rotations["cross"] == [0]
    assert rotations["straight"] == [0, 1]
    assert rotations["end"] == [0, 1, 2, 3]
    assert rotations["curve"] == [0, 1, 2, 3]
    assert rotations["branch"] == [0, 1, 2, 3]


def test_fitting_rotation_respects_requirement():
    """Every returned rotation matches all concrete sides."""
    r = random.Random(7)
    for variant in loop_core.VARIANTS.values():
        for requirement in itertools.product((-1, 0, 1), repeat=4):
            rotation = loop_core.get_fitting_rotation(variant, requirement, r)
            if rotation is None:
                continue
            effective = loop_core.rotate(variant.connectors, rotation)
            for side in loop_core.SIDES:
                assert requirement[side] == -1 or effective[side] == requirement[side]


def test_fitting_rotation_no_fit():
    """Straight cannot open both east and south; end cannot be fully closed."""
    straight = loop_core.get_variant("straight")
    assert loop_core.get_fitting_rotation(straight, (0, 1, 1, -1)) is None
    end = loop_core.get_variant("end")
    assert loop_core.get_fitting_rotation(end, (0, 0, 0, 0)) is None


def test_fitting_rotation_uniform_tie_break():
    """All qualifying rotations are reachable, not just the first one."""
    r = random.Random(11)
    end = loop_core.get_variant("end")
    seen = {loop_core.get_fitting_rotation(end, (-1, -1, -1, -1), r) for _ in range(200)}
    assert seen == {0, 1, 2, 3}
    curve = loop_core.get_variant("curve")
    # Open west, closed north: only the W-S rotation fits
    seen = {loop_core.get_fitting_rotation(curve, (0, -1, -1, 1), r) for _ in range(50)}
    assert seen == {2}


def test_exact_rotation():
    curve = loop_core.get_variant("curve")
    assert loop_core.get_exact_rotation(curve, (0, 1, 1, 0)) == 1
    assert loop_core.get_exact_rotation(curve, (1, 0, 1, 0)) is None
    straight = loop_core.get_variant("straight")
    assert loop_core.get_exact_rotation(straight, (0, 1, 0, 1)) == 1


def test_every_connector_pattern_has_a_variant():
    """The stock catalog covers all 16 fully concrete requirements."""
    for requirement in ALL_VECTORS:
        assert any(
            loop_core.get_exact_rotation(v, requirement) is not None
            for v in loop_core.VARIANTS.values()
        ), requirement


def test_effective_connectors():
    tile = loop_core.PlacedTile(loop_core.get_variant("branch"), 2)
    assert loop_core.effective_connectors(tile) == (1, 0, 1, 1)
    assert loop_core.effective_connectors(None) == (0, 0, 0, 0)
