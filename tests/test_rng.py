"""Tests for piece factories."""

import pytest

from blockfall_core.rng import RandomPieceFactory, SequencePieceFactory, SevenBagPieceFactory
from blockfall_core.shapes import PIECE_KINDS


def test_random_factory_deterministic():
    """Test that same seed produces same sequence."""
    factory1 = RandomPieceFactory(12345, tags=["a", "b", "c"])
    factory2 = RandomPieceFactory(12345, tags=["a", "b", "c"])

    sequence1 = [(factory1.next_kind(), factory1.next_tag()) for _ in range(30)]
    sequence2 = [(factory2.next_kind(), factory2.next_tag()) for _ in range(30)]

    assert sequence1 == sequence2, "Same seed should produce identical sequences"


def test_random_factory_covers_all_kinds():
    """Test uniform selection reaches every kind."""
    factory = RandomPieceFactory(7)
    seen = {factory.next_kind() for _ in range(500)}
    assert seen == set(PIECE_KINDS)


def test_random_factory_empty_tag_pool():
    """Test an empty tag pool yields no tag."""
    factory = RandomPieceFactory(1)
    assert all(factory.next_tag() is None for _ in range(10))


def test_random_factory_tags_from_pool():
    """Test tags are drawn from the supplied pool."""
    factory = RandomPieceFactory(3, tags=["x", "y"])
    assert {factory.next_tag() for _ in range(50)} <= {"x", "y"}


def test_seven_bag_contains_all_pieces():
    """Test that each bag contains all 7 pieces."""
    factory = SevenBagPieceFactory(42)

    for _ in range(3):
        bag = [factory.next_kind() for _ in range(7)]
        assert sorted(bag) == sorted(PIECE_KINDS)


def test_seven_bag_deterministic():
    """Test the same seed deals the same bags."""
    first = SevenBagPieceFactory(999)
    second = SevenBagPieceFactory(999)

    assert [first.next_kind() for _ in range(14)] == [second.next_kind() for _ in range(14)]


def test_sequence_factory_cycles():
    """Test scripted kinds and tags repeat in order."""
    factory = SequencePieceFactory(["I", "O"], tags=[1, 2, 3])

    assert [factory.next_kind() for _ in range(5)] == ["I", "O", "I", "O", "I"]
    assert [factory.next_tag() for _ in range(4)] == [1, 2, 3, 1]


def test_sequence_factory_validation():
    """Test scripted kinds must be known."""
    with pytest.raises(ValueError):
        SequencePieceFactory([])
    with pytest.raises(ValueError):
        SequencePieceFactory(["I", "W"])
