"""
Token and state primitives for Markov chains.

Tokens are the opaque units of a process. Strings, numbers and ``None`` are used as they are.
Booleans are wrapped in :class:`BoolToken` so they never share a key with ``1`` or ``0``.
Composite values (lists and dictionaries, nested to any depth) are normalized into
:class:`CompositeToken` so that structurally equal values hash and compare equal. The sentinels :attr:`Sentinel.BEGIN` and :attr:`Sentinel.END` mark the edges of a run
and can never collide with caller data.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Iterable, List, Tuple


class Sentinel(Enum):
    """
    Boundary tokens of a run.
    """

    BEGIN = "BEGIN"
    END = "END"

    def __repr__(self) -> str:
        return f"Sentinel.{self.name}"


BEGIN = Sentinel.BEGIN
END = Sentinel.END


@dataclass(frozen=True, order=True)
class CompositeToken:
    """
    Canonical, hashable stand-in for a structured token.

    :ivar payload: Canonical JavaScript Object Notation text of the original value.
    :vartype payload: str
    """

    payload: str

    @classmethod
    def from_value(cls, value: Any) -> "CompositeToken":
        """
        Build a composite token from a structured value.

        :param value: List, tuple or dictionary made of serializable values.
        :type value: Any
        :return: Canonical composite token.
        :rtype: CompositeToken
        :raises TypeError: If the value cannot be represented as JSON.
        """
        return cls(payload=json.dumps(value, sort_keys=True, separators=(",", ":")))

    def value(self) -> Any:
        """
        Rebuild the structured value this token stands for.

        :return: Decoded value.
        :rtype: Any
        """
        return json.loads(self.payload)


@dataclass(frozen=True, order=True)
class BoolToken:
    """
    Stand-in for a boolean token.

    Python treats ``True == 1`` and ``False == 0``, so booleans are wrapped to keep them apart
    from numeric tokens in transition tables.

    :ivar value: Original boolean.
    :vartype value: bool
    """

    value: bool


Token = Hashable
State = Tuple[Token, ...]


def canonical_token(token: Any) -> Token:
    """
    Convert a caller token into the form used as a state-space key.

    :param token: Caller token.
    :type token: Any
    :return: Hashable canonical token.
    :rtype: Token
    """
    if isinstance(token, (Sentinel, CompositeToken, BoolToken)):
        return token
    if isinstance(token, bool):
        return BoolToken(token)
    if isinstance(token, (list, tuple, dict)):
        return CompositeToken.from_value(token)
    return token


def restore_token(token: Token) -> Any:
    """
    Convert a canonical token back into the caller's representation.

    :param token: Canonical token.
    :type token: Token
    :return: Original token value.
    :rtype: Any
    """
    if isinstance(token, CompositeToken):
        return token.value()
    if isinstance(token, BoolToken):
        return token.value
    return token


def canonical_state(tokens: Iterable[Any]) -> State:
    return tuple(canonical_token(token) for token in tokens)


def initial_state(order: int) -> State:
    """
    Return the state made of ``order + 1`` BEGIN tokens.

    :param order: Chain order.
    :type order: int
    :return: Initial state.
    :rtype: State
    """
    return (BEGIN,) * (order + 1)


def is_sentinel(token: object) -> bool:
    return isinstance(token, Sentinel)


def strip_sentinels(state: Iterable[Token]) -> List[Any]:
    """
    Drop sentinel tokens and restore the remaining ones.

    :param state: Canonical state or token sequence.
    :type state: Iterable[Token]
    :return: Caller-facing tokens.
    :rtype: list[Any]
    """
    return [restore_token(token) for token in state if not is_sentinel(token)]
