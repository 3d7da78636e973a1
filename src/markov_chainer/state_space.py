"""
State space construction for Markov chains.

A state space maps each observed state (a tuple of ``order + 1`` canonical tokens) to the
weighted tables of tokens seen after it and before it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence, Set

from .errors import ChainConstructionError
from .tokens import BEGIN, END, State, Token, canonical_token, initial_state

logger = logging.getLogger(__name__)


@dataclass
class Transitions:
    """
    Weighted successor and predecessor tables for a single state.

    :ivar next: Occurrence count of each token observed after the state.
    :vartype next: dict[Token, int]
    :ivar prev: Occurrence count of each token observed before the state.
    :vartype prev: dict[Token, int]
    """

    next: Dict[Token, int] = field(default_factory=dict)
    prev: Dict[Token, int] = field(default_factory=dict)


StateSpace = Dict[State, Transitions]
TokenMap = Dict[Token, Set[State]]


def validate_order(order: object) -> int:
    """
    Validate a chain order.

    :param order: Candidate order.
    :type order: object
    :return: Validated order.
    :rtype: int
    :raises ChainConstructionError: If the order is not a non-negative integer.
    """
    if isinstance(order, bool) or not isinstance(order, int) or order < 0:
        raise ChainConstructionError(order=order)
    return order


def register_state(token_map: TokenMap, state: State) -> None:
    for token in state:
        token_map.setdefault(token, set()).add(state)


def seed(
    run: Sequence[Any],
    state_space: StateSpace,
    start: State,
    order: int,
    token_map: Optional[TokenMap] = None,
) -> None:
    """
    Update a state space in place from a single run.

    :param run: Ordered tokens of one run.
    :type run: Sequence[Any]
    :param state_space: State space to update.
    :type state_space: StateSpace
    :param start: Initial state made of ``order + 1`` BEGIN tokens.
    :type start: State
    :param order: Chain order.
    :type order: int
    :param token_map: Optional token map to update alongside the state space.
    :type token_map: TokenMap or None
    """
    items = [*start, *(canonical_token(token) for token in run), END]
    size = order + 1
    for index in range(len(items) - size):
        state: State = tuple(items[index : index + size])
        following = items[index + size]
        preceding = items[index - 1] if index > 0 else BEGIN

        transitions = state_space.get(state)
        if transitions is None:
            transitions = Transitions()
            state_space[state] = transitions
        transitions.next[following] = transitions.next.get(following, 0) + 1
        transitions.prev[preceding] = transitions.prev.get(preceding, 0) + 1

        if token_map is not None:
            register_state(token_map, state)


def build_state_space(corpus: Iterable[Sequence[Any]], order: int) -> StateSpace:
    """
    Build a state space from a corpus of runs.

    :param corpus: Sample runs of the process.
    :type corpus: Iterable[Sequence[Any]]
    :param order: Chain order.
    :type order: int
    :return: New state space.
    :rtype: StateSpace
    :raises ChainConstructionError: If the order is invalid.
    """
    validate_order(order)
    start = initial_state(order)
    state_space: StateSpace = {}
    run_count = 0
    for run in corpus:
        seed(run, state_space, start, order)
        run_count += 1
    logger.debug(
        "built state space order=%d runs=%d states=%d", order, run_count, len(state_space)
    )
    return state_space


def build_token_map(state_space: StateSpace) -> TokenMap:
    """
    Map every token to the set of states that contain it.

    :param state_space: State space to index.
    :type state_space: StateSpace
    :return: Token map.
    :rtype: TokenMap
    """
    token_map: TokenMap = {}
    for state in state_space:
        register_state(token_map, state)
    logger.debug("built token map tokens=%d", len(token_map))
    return token_map
