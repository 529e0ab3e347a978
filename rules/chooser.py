"""
Non-Repeating Chooser - Fair random draws without repetition
============================================================

Draws elements from a fixed pool at random, never returning the same
element twice until every element has been returned once.
"""

import random
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar


T = TypeVar("T")


class NonRepeatingChooser(Generic[T]):
    """
    Random selection sampler that exhausts its pool before repeating.

    The pool is partitioned in place: the first ``remaining`` slots hold
    elements not yet drawn in the current cycle. Each draw picks one of
    those slots uniformly, swaps it to the end of the partition and
    shrinks the partition. When the partition is empty it is reset to
    the full pool, so the chooser can be queried indefinitely.

    Example:
        chooser = NonRepeatingChooser(["a", "b", "c"])
        picks = {chooser.next() for _ in range(3)}
        assert picks == {"a", "b", "c"}
    """

    def __init__(self, items: Sequence[T], rng: Optional[random.Random] = None):
        """
        Initialize the chooser.

        Args:
            items: Elements to draw from (copied)
            rng: Random source, a fresh unseeded one when omitted

        Raises:
            ValueError: If items is empty
        """
        if not items:
            raise ValueError("NonRepeatingChooser needs at least one item")

        self._values: List[T] = list(items)
        self._remaining = len(self._values)
        self._rng = rng if rng is not None else random.Random()

    def next(self) -> T:
        """Draw the next element."""
        i = self._rng.randrange(self._remaining)
        last = self._remaining - 1
        result = self._values[i]
        self._values[i], self._values[last] = self._values[last], self._values[i]

        self._remaining = last
        if self._remaining == 0:
            self._remaining = len(self._values)

        return result

    @property
    def remaining(self) -> int:
        """Number of draws left before the current cycle resets."""
        return self._remaining

    @property
    def items(self) -> Tuple[T, ...]:
        """Snapshot of the pool in its current order."""
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)
