"""
JSON-compatible serialization of chain state spaces.

A serialized state space is a list with one record per state::

    [[state_tokens, [[next_token, count], ...], [[prev_token, count], ...]]], ...]

Sentinels are written as reserved marker strings and composite tokens as tagged canonical JSON
strings. Caller strings that start with the escape prefix are escaped so they never collide with
a marker.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

from .constants import BEGIN_MARKER, COMPOSITE_PREFIX, END_MARKER, ESCAPE_PREFIX
from .errors import ChainConsistencyError
from .state_space import StateSpace, Transitions
from .tokens import BEGIN, END, BoolToken, CompositeToken, State, Token

if TYPE_CHECKING:
    from .chain import Chain

logger = logging.getLogger(__name__)

Record = List[Any]

_MARKERS: Dict[str, Token] = {BEGIN_MARKER: BEGIN, END_MARKER: END}


def encode_token(token: Token) -> Any:
    """
    Rewrite a canonical token into its serialized form.

    :param token: Canonical token.
    :type token: Token
    :return: JSON-compatible value.
    :rtype: Any
    """
    if token is BEGIN:
        return BEGIN_MARKER
    if token is END:
        return END_MARKER
    if isinstance(token, CompositeToken):
        return COMPOSITE_PREFIX + token.payload
    if isinstance(token, BoolToken):
        return token.value
    if isinstance(token, str) and token.startswith(ESCAPE_PREFIX):
        return ESCAPE_PREFIX + token
    return token


def decode_token(value: Any) -> Token:
    """
    Reverse :func:`encode_token`.

    :param value: Serialized token.
    :type value: Any
    :return: Canonical token.
    :rtype: Token
    """
    if not isinstance(value, str):
        if isinstance(value, bool):
            return BoolToken(value)
        if isinstance(value, (list, dict)):
            # Records written by hand may carry raw structured tokens.
            return CompositeToken.from_value(value)
        return value
    marker = _MARKERS.get(value)
    if marker is not None:
        return marker
    if value.startswith(COMPOSITE_PREFIX):
        return _decode_composite(value[len(COMPOSITE_PREFIX) :])
    if value.startswith(ESCAPE_PREFIX):
        return value[len(ESCAPE_PREFIX) :]
    return value


def _decode_composite(payload: str) -> CompositeToken:
    try:
        value = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ChainConsistencyError(
            reason=f"composite token payload is not valid JSON ({payload!r})"
        ) from exc
    return CompositeToken.from_value(value)


def _encode_table(table: Dict[Token, int]) -> List[List[Any]]:
    return [[encode_token(token), count] for token, count in table.items()]


def export_state_space(state_space: StateSpace) -> List[Record]:
    """
    Serialize a state space into JSON-compatible records.

    :param state_space: State space to serialize.
    :type state_space: StateSpace
    :return: Serialized records.
    :rtype: list[list[Any]]
    """
    return [
        [
            [encode_token(token) for token in state],
            [_encode_table(transitions.next), _encode_table(transitions.prev)],
        ]
        for state, transitions in state_space.items()
    ]


def _decode_table(pairs: Any, *, state: Sequence[Any]) -> Dict[Token, int]:
    table: Dict[Token, int] = {}
    for pair in pairs:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ChainConsistencyError(
                state=state, reason=f"transition entries must be [token, count] (got {pair!r})"
            )
        value, count = pair
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise ChainConsistencyError(
                state=state, reason=f"transition counts must be positive integers (got {count!r})"
            )
        token = decode_token(value)
        table[token] = table.get(token, 0) + count
    return table


def _split_record(record: Any, index: int) -> Tuple[Sequence[Any], Any, Any]:
    try:
        state, (next_pairs, prev_pairs) = record
    except (TypeError, ValueError) as exc:
        raise ChainConsistencyError(
            reason=f"record {index} must be [state, [next_pairs, prev_pairs]]"
        ) from exc
    if not isinstance(state, (list, tuple)):
        raise ChainConsistencyError(reason=f"record {index} state must be a list")
    return state, next_pairs, prev_pairs


def import_state_space(
    records: Sequence[Any], *, order: Optional[int] = None
) -> Tuple[int, StateSpace]:
    """
    Rebuild a state space from serialized records.

    The order is inferred from the first record. Every other record must have the same state
    length.

    :param records: Serialized records.
    :type records: Sequence[Any]
    :param order: Order to use when there are no records.
    :type order: int or None
    :return: Chain order and rebuilt state space.
    :rtype: tuple[int, StateSpace]
    :raises ChainConsistencyError: If records are malformed or have inconsistent state lengths.
    """
    if not isinstance(records, (list, tuple)):
        raise ChainConsistencyError(reason="serialized chain must be a list of records")
    state_space: StateSpace = {}
    expected: Optional[int] = None
    for index, record in enumerate(records):
        state_values, next_pairs, prev_pairs = _split_record(record, index)
        if expected is None:
            expected = len(state_values)
            if expected == 0:
                raise ChainConsistencyError(reason="states must contain at least one token")
        elif len(state_values) != expected:
            raise ChainConsistencyError(
                expected=expected, actual=len(state_values), state=state_values
            )
        state: State = tuple(decode_token(value) for value in state_values)
        next_table = _decode_table(next_pairs, state=state_values)
        prev_table = _decode_table(prev_pairs, state=state_values)
        transitions = state_space.get(state)
        if transitions is None:
            state_space[state] = Transitions(next=next_table, prev=prev_table)
            continue
        # Repeated states merge their counts, like repeated pairs within a table.
        for token, count in next_table.items():
            transitions.next[token] = transitions.next.get(token, 0) + count
        for token, count in prev_table.items():
            transitions.prev[token] = transitions.prev.get(token, 0) + count
    if expected is not None:
        order = expected - 1
    elif order is None:
        order = 0
    logger.debug("imported state space order=%d states=%d", order, len(state_space))
    return order, state_space


def dumps(chain: "Chain", **json_options: Any) -> str:
    """
    Serialize a chain into a JSON string.

    :param chain: Chain to serialize.
    :type chain: Chain
    :param json_options: Extra keyword arguments for :func:`json.dumps`.
    :type json_options: Any
    :return: JSON text.
    :rtype: str
    """
    return json.dumps(chain.to_json(), **json_options)


def loads(
    text: Union[str, bytes], *, use_token_map: bool = False, order: Optional[int] = None
) -> "Chain":
    """
    Create a chain from JSON text produced by :func:`dumps`.

    :param text: JSON text.
    :type text: str or bytes
    :param use_token_map: Whether to build a token map for the new chain.
    :type use_token_map: bool
    :param order: Order to use when the serialized chain has no states.
    :type order: int or None
    :return: New chain instance.
    :rtype: Chain
    """
    from .chain import Chain

    return Chain.from_json(json.loads(text), use_token_map=use_token_map, order=order)
