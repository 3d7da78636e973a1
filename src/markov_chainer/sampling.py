"""
Weighted random selection helpers.
"""

from __future__ import annotations

import random
from bisect import bisect_right
from itertools import accumulate
from typing import Any, Optional, Protocol, Sequence


class RandomSource(Protocol):
    """
    Anything that produces uniform floats in ``[0, 1)``.
    """

    def random(self) -> float: ...


def pick(weights: Sequence[float], rng: Optional[RandomSource] = None) -> int:
    """
    Pick a random index with probability proportional to its weight.

    The cumulative sum of the weights is searched for the left-most entry strictly greater than
    a uniform draw in ``[0, total)``.

    :param weights: Non-negative weights.
    :type weights: Sequence[float]
    :param rng: Optional random source, defaults to the ``random`` module.
    :type rng: RandomSource or None
    :return: Selected index.
    :rtype: int
    :raises ValueError: If weights are empty or do not sum to a positive total.
    """
    if not weights:
        raise ValueError("weights must not be empty")
    cumulative = list(accumulate(weights))
    total = cumulative[-1]
    if total <= 0:
        raise ValueError("weights must sum to a positive total")
    source = rng if rng is not None else random
    draw = source.random() * total
    return min(bisect_right(cumulative, draw), len(cumulative) - 1)


def random_element(
    items: Sequence[Any],
    weights: Optional[Sequence[float]] = None,
    rng: Optional[RandomSource] = None,
) -> Any:
    """
    Return a random element, weighted when weights match the items.

    :param items: Candidate items.
    :type items: Sequence[Any]
    :param weights: Optional weights, one per item.
    :type weights: Sequence[float] or None
    :param rng: Optional random source.
    :type rng: RandomSource or None
    :return: Selected item, or None when there are no items.
    :rtype: Any
    """
    if not items:
        return None
    if weights is not None and len(weights) == len(items):
        return items[pick(weights, rng)]
    source = rng if rng is not None else random
    return items[int(source.random() * len(items)) % len(items)]
