"""Piece factories.

The engine asks a factory for the next piece kind and visual tag. Factories
own all randomness so games can be replayed from a seed or scripted in tests.
"""

import random
from abc import ABC, abstractmethod
from itertools import cycle
from typing import Any, List, Optional, Sequence

from blockfall_core.shapes import PIECE_KINDS


class PieceFactory(ABC):
    """Chooses the kind and visual tag of each new piece."""

    @abstractmethod
    def next_kind(self) -> str:
        """Return the kind of the next piece."""

    @abstractmethod
    def next_tag(self) -> Any:
        """Return the visual tag of the next piece (None for no tag)."""


class RandomPieceFactory(PieceFactory):
    """Uniform random kinds and tags.

    Each kind is drawn independently, so repeats and droughts are possible.
    """

    def __init__(self, seed: Optional[int] = None, tags: Sequence[Any] = ()):
        """Initialize with an optional seed and tag pool.

        Args:
            seed: Random seed for reproducibility (None = nondeterministic)
            tags: Pool of visual tags; may be empty
        """
        self.seed = seed
        self.rng = random.Random(seed)
        self.tags: List[Any] = list(tags)

    def next_kind(self) -> str:
        return self.rng.choice(PIECE_KINDS)

    def next_tag(self) -> Any:
        if not self.tags:
            return None
        return self.rng.choice(self.tags)


class SevenBagPieceFactory(RandomPieceFactory):
    """7-bag randomizer.

    All 7 kinds are shuffled into a bag and dealt out before the bag is
    refilled, so every run of 7 pieces from a bag boundary has one of each.
    """

    def __init__(self, seed: Optional[int] = None, tags: Sequence[Any] = ()):
        super().__init__(seed, tags)
        self.bag: List[str] = []
        self._refill_bag()

    def _refill_bag(self) -> None:
        """Shuffle all 7 kinds into the bag."""
        self.bag = list(PIECE_KINDS)
        self.rng.shuffle(self.bag)

    def next_kind(self) -> str:
        if not self.bag:
            self._refill_bag()
        return self.bag.pop()


class SequencePieceFactory(PieceFactory):
    """Deals a fixed, repeating sequence of kinds and tags."""

    def __init__(self, kinds: Sequence[str], tags: Sequence[Any] = ()):
        """Initialize with scripted sequences.

        Args:
            kinds: Kinds to deal in order, repeated forever
            tags: Tags to deal in order, repeated forever; empty means None
        """
        if not kinds:
            raise ValueError("At least one piece kind is required")
        for kind in kinds:
            if kind not in PIECE_KINDS:
                raise ValueError(f"Invalid piece kind: {kind}")
        self._kinds = cycle(list(kinds))
        self._tags = cycle(list(tags)) if tags else None

    def next_kind(self) -> str:
        return next(self._kinds)

    def next_tag(self) -> Any:
        if self._tags is None:
            return None
        return next(self._tags)
