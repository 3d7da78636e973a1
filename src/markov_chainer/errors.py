"""
Error types for markov-chainer.
"""

from __future__ import annotations

from typing import Optional, Sequence


class ChainError(RuntimeError):
    """
    Base class for chain errors.
    """


class ChainConstructionError(ChainError, ValueError):
    """
    Chain construction was given an invalid order.

    :param order: Order value that was rejected.
    :type order: object
    """

    def __init__(self, *, order: object) -> None:
        self.order = order
        message = f"Invalid Markov chain order. Expected `order >= 0` but got {order!r}."
        super().__init__(message)


class ChainConsistencyError(ChainError, ValueError):
    """
    Serialized chain data is not consistent with a single chain order.

    :param expected: Expected state length.
    :type expected: int or None
    :param actual: Actual state length.
    :type actual: int or None
    :param state: Offending serialized state.
    :type state: Sequence[object] or None
    :param reason: Optional description used instead of the length mismatch message.
    :type reason: str or None
    """

    def __init__(
        self,
        *,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        state: Optional[Sequence[object]] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.expected = expected
        self.actual = actual
        self.state = list(state) if state is not None else None
        if reason is None:
            message = (
                "Inconsistent Markov chain order. "
                f"Expected state length {expected} but got {actual} ({self.state!r})."
            )
        else:
            message = f"Invalid serialized Markov chain: {reason}"
        super().__init__(message)


class WalkLimitExceededError(ChainError):
    """
    A walk produced more steps than the configured maximum.

    This only happens when the caller opts into a step limit. Chains whose transitions form a
    cycle that never reaches a stop token would otherwise walk forever.

    :param max_steps: Configured step limit.
    :type max_steps: int
    :param direction: Walk direction value.
    :type direction: str
    """

    def __init__(self, *, max_steps: int, direction: str) -> None:
        self.max_steps = max_steps
        self.direction = direction
        super().__init__(f"Walk {direction} exceeded max_steps={max_steps}")
