"""
Time-homogeneous Markov chain with optional memory.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Union

from .constants import DEFAULT_ORDER
from .errors import WalkLimitExceededError
from .models import ChainConfiguration, RunRequest
from .sampling import RandomSource, random_element
from .serialization import export_state_space, import_state_space
from .state_space import (
    StateSpace,
    TokenMap,
    build_state_space,
    build_token_map,
    seed,
    validate_order,
)
from .tokens import (
    BEGIN,
    END,
    State,
    Token,
    canonical_state,
    canonical_token,
    initial_state,
    restore_token,
    strip_sentinels,
)

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    """
    Direction of a chain walk.
    """

    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def stop_token(self) -> Token:
        return END if self is Direction.FORWARD else BEGIN


class RunResult(NamedTuple):
    """
    Steps produced by :meth:`Chain.run`.

    :ivar back_steps: Tokens generated walking backward, in reading order.
    :vartype back_steps: list[Any]
    :ivar root_tokens: Tokens of the start state, without sentinels.
    :vartype root_tokens: list[Any]
    :ivar forward_steps: Tokens generated walking forward.
    :vartype forward_steps: list[Any]
    """

    back_steps: List[Any]
    root_tokens: List[Any]
    forward_steps: List[Any]


class Chain:
    """
    A time-homogeneous Markov chain with optional memory.

    A chain of order ``k`` keys its state space by tuples of ``k + 1`` tokens. It can be built
    from a corpus of runs or restored from a prebuilt state space.

    :param corpus: Sample runs of the process.
    :type corpus: Iterable[Sequence[Any]] or None
    :param order: Size of the chain's memory. Ignored when a non-empty state space is given.
    :type order: int
    :param use_token_map: Whether to map tokens to the states containing them.
    :type use_token_map: bool
    :param state_space: Prebuilt state space.
    :type state_space: StateSpace or None
    :param rng: Optional random source used for every random choice.
    :type rng: RandomSource or None
    :param max_steps: Default per-direction step limit for walks.
    :type max_steps: int or None
    :param run_defaults: Default options for :meth:`run_request`.
    :type run_defaults: RunRequest or None
    :raises ChainConstructionError: If the order is invalid.
    """

    def __init__(
        self,
        corpus: Optional[Iterable[Sequence[Any]]] = None,
        *,
        order: int = DEFAULT_ORDER,
        use_token_map: bool = False,
        state_space: Optional[StateSpace] = None,
        rng: Optional[RandomSource] = None,
        max_steps: Optional[int] = None,
        run_defaults: Optional[RunRequest] = None,
    ) -> None:
        if state_space is not None:
            if state_space:
                order = len(next(iter(state_space))) - 1
            self._order = validate_order(order)
            self._state_space = state_space
            for run in corpus or ():
                seed(run, self._state_space, initial_state(self._order), self._order)
        else:
            self._order = validate_order(order)
            self._state_space = build_state_space(corpus or (), self._order)
        self._initial_state = initial_state(self._order)
        self._rng = rng
        self._max_steps = None if max_steps is None else validate_max_steps(max_steps)
        self._run_defaults = run_defaults or RunRequest()
        self._token_map: Optional[TokenMap] = None
        self._token_map_is_stale = False
        if use_token_map and self._order > 0:
            self._token_map = build_token_map(self._state_space)

    @classmethod
    def from_configuration(
        cls,
        corpus: Optional[Iterable[Sequence[Any]]] = None,
        configuration: Union[ChainConfiguration, Mapping[str, object], None] = None,
        *,
        rng: Optional[RandomSource] = None,
    ) -> "Chain":
        """
        Build a chain from a configuration model or mapping.

        :param corpus: Sample runs of the process.
        :type corpus: Iterable[Sequence[Any]] or None
        :param configuration: Chain configuration.
        :type configuration: ChainConfiguration or Mapping[str, object] or None
        :param rng: Optional random source.
        :type rng: RandomSource or None
        :return: New chain instance.
        :rtype: Chain
        """
        parsed = (
            configuration
            if isinstance(configuration, ChainConfiguration)
            else ChainConfiguration.model_validate(configuration or {})
        )
        return cls(
            corpus,
            order=parsed.order,
            use_token_map=parsed.use_token_map,
            rng=rng,
            max_steps=parsed.max_steps,
            run_defaults=parsed.run,
        )

    @property
    def order(self) -> int:
        return self._order

    @property
    def state_space(self) -> StateSpace:
        return self._state_space

    @property
    def initial_state(self) -> State:
        return self._initial_state

    @property
    def token_map(self) -> Optional[TokenMap]:
        return self._token_map

    @property
    def token_map_is_stale(self) -> bool:
        """
        Whether runs were seeded after the token map was built.
        """
        return self._token_map_is_stale

    def seed(self, run: Sequence[Any]) -> None:
        """
        Add a single run to the chain.

        The token map is not updated. Call :meth:`rebuild_token_map` once seeding is done.

        :param run: Ordered tokens of one run.
        :type run: Sequence[Any]
        """
        seed(run, self._state_space, self._initial_state, self._order)
        if self._token_map is not None and not self._token_map_is_stale:
            self._token_map_is_stale = True
            logger.debug("token map is stale after seeding; call rebuild_token_map()")

    def rebuild_token_map(self) -> Optional[TokenMap]:
        """
        Rebuild the token map from the current state space.

        Chains of order zero never carry a token map.

        :return: Rebuilt token map, or None for order zero.
        :rtype: TokenMap or None
        """
        if self._order > 0:
            self._token_map = build_token_map(self._state_space)
        self._token_map_is_stale = False
        return self._token_map

    def step(self, state: State, direction: Direction = Direction.FORWARD) -> Token:
        """
        Randomly choose the next token from a state.

        :param state: Canonical state to move from.
        :type state: State
        :param direction: Movement direction.
        :type direction: Direction
        :return: Chosen canonical token, or the direction's stop token for unknown states.
        :rtype: Token
        """
        direction = Direction(direction)
        transitions = self._state_space.get(state)
        if transitions is None:
            return direction.stop_token
        table = transitions.next if direction is Direction.FORWARD else transitions.prev
        if not table:
            return direction.stop_token
        return random_element(list(table.keys()), list(table.values()), self._rng)

    def walk(
        self,
        from_state: Optional[Sequence[Any]] = None,
        direction: Direction = Direction.FORWARD,
        *,
        max_steps: Optional[int] = None,
    ) -> Iterator[Any]:
        """
        Generate successive tokens until the chain reaches a stop token.

        :param from_state: Start state, defaults to the initial state.
        :type from_state: Sequence[Any] or None
        :param direction: Movement direction.
        :type direction: Direction
        :param max_steps: Optional limit on the number of yielded tokens, defaults to the
            chain's limit.
        :type max_steps: int or None
        :return: Iterator over restored tokens.
        :rtype: Iterator[Any]
        :raises WalkLimitExceededError: If the walk would exceed ``max_steps``.
        :raises ValueError: If ``max_steps`` is below 1.
        """
        direction = Direction(direction)
        if max_steps is None:
            max_steps = self._max_steps
        else:
            validate_max_steps(max_steps)
        state = self._initial_state if from_state is None else canonical_state(from_state)
        return self._walk(state, direction, max_steps)

    def _walk(self, state: State, direction: Direction, max_steps: Optional[int]) -> Iterator[Any]:
        stop_token = direction.stop_token
        count = 0
        while True:
            token = self.step(state, direction)
            if token is stop_token:
                return
            if max_steps is not None and count >= max_steps:
                raise WalkLimitExceededError(max_steps=max_steps, direction=direction.value)
            count += 1
            yield restore_token(token)
            if direction is Direction.FORWARD:
                state = (*state[1:], token)
            else:
                state = (token, *state[:-1])

    def walk_forward(
        self, from_state: Optional[Sequence[Any]] = None, *, max_steps: Optional[int] = None
    ) -> Iterator[Any]:
        return self.walk(from_state, Direction.FORWARD, max_steps=max_steps)

    def walk_backward(
        self, from_state: Optional[Sequence[Any]] = None, *, max_steps: Optional[int] = None
    ) -> Iterator[Any]:
        return self.walk(from_state, Direction.BACKWARD, max_steps=max_steps)

    def _matching_windows(self, tokens: Sequence[Any]) -> List[State]:
        size = self._order + 1
        items = [*self._initial_state, *(canonical_token(token) for token in tokens), END]
        windows = [tuple(items[index : index + size]) for index in range(len(tokens) + 1)]
        return [window for window in windows[1:] if window in self._state_space]

    def _token_map_state(self, tokens: Sequence[Any]) -> Optional[State]:
        if self._token_map is None or not tokens:
            return None
        choices = [
            token for token in (canonical_token(raw) for raw in tokens) if token in self._token_map
        ]
        token = random_element(choices, rng=self._rng)
        if token is None:
            return None
        return random_element(sorted(self._token_map[token], key=_state_sort_key), rng=self._rng)

    def _resolve(self, tokens: Sequence[Any], use_token_map: bool) -> Optional[State]:
        state = random_element(self._matching_windows(tokens), rng=self._rng)
        if state is not None:
            logger.debug("resolved start state from input window")
            return state
        if use_token_map and self._order > 0:
            state = self._token_map_state(tokens)
            if state is not None:
                logger.debug("resolved start state from token map")
                return state
        return None

    def resolve_start_state(
        self, tokens: Sequence[Any] = (), use_token_map: bool = True
    ) -> State:
        """
        Find the best start state for a partial input.

        Every window of ``order + 1`` tokens in the padded input is a candidate, except the first
        one, which is the bare initial state. A random known window wins. Otherwise, when enabled,
        a random state containing any input token is used. The initial state is the last resort.

        :param tokens: Partial input.
        :type tokens: Sequence[Any]
        :param use_token_map: Whether to fall back to the token map.
        :type use_token_map: bool
        :return: Canonical start state.
        :rtype: State
        """
        state = self._resolve(list(tokens), use_token_map)
        return self._initial_state if state is None else state

    def run(
        self,
        tokens: Sequence[Any] = (),
        *,
        back_search: bool = True,
        use_token_map: bool = True,
        run_missing_tokens: bool = True,
        max_steps: Optional[int] = None,
    ) -> RunResult:
        """
        Walk the chain around a partial input and return all steps.

        :param tokens: Partial input used to find the start state.
        :type tokens: Sequence[Any]
        :param back_search: Whether to also walk backward.
        :type back_search: bool
        :param use_token_map: Whether to fall back to the token map.
        :type use_token_map: bool
        :param run_missing_tokens: Whether to generate output when the input matches nothing.
        :type run_missing_tokens: bool
        :param max_steps: Optional per-direction step limit.
        :type max_steps: int or None
        :return: Backward steps, root tokens and forward steps.
        :rtype: RunResult
        :raises WalkLimitExceededError: If a walk exceeds ``max_steps``.
        :raises ValueError: If ``max_steps`` is below 1.
        """
        tokens = list(tokens)
        if max_steps is not None:
            validate_max_steps(max_steps)
        resolved = self._resolve(tokens, use_token_map)
        if resolved is None:
            if not run_missing_tokens and tokens:
                logger.debug("no start state for %d input tokens; refusing to run", len(tokens))
                return RunResult([], [], [])
            resolved = self._initial_state

        forward_steps = list(self.walk(resolved, Direction.FORWARD, max_steps=max_steps))
        back_steps: List[Any] = []
        if back_search:
            back_steps = list(self.walk(resolved, Direction.BACKWARD, max_steps=max_steps))
            back_steps.reverse()

        has_steps = bool(forward_steps or back_steps)
        root_tokens = strip_sentinels(resolved) if has_steps else []
        return RunResult(back_steps, root_tokens, forward_steps)

    def run_request(
        self, request: Union[RunRequest, Mapping[str, object], None] = None
    ) -> RunResult:
        """
        Run the chain from a request model or mapping.

        Mapping values are layered over the chain's default run options.

        :param request: Run options, defaults to the chain's default run options.
        :type request: RunRequest or Mapping[str, object] or None
        :return: Backward steps, root tokens and forward steps.
        :rtype: RunResult
        """
        if isinstance(request, RunRequest):
            parsed = request
        else:
            overrides = RunRequest.model_validate(request or {})
            parsed = self._run_defaults.model_copy(
                update=overrides.model_dump(exclude_unset=True)
            )
        return self.run(
            parsed.tokens,
            back_search=parsed.back_search,
            use_token_map=parsed.use_token_map,
            run_missing_tokens=parsed.run_missing_tokens,
            max_steps=parsed.max_steps,
        )

    def to_json(self) -> List[Any]:
        """
        Serialize the chain into JSON-compatible records.

        :return: One ``[state, [next_pairs, prev_pairs]]`` record per state.
        :rtype: list[Any]
        """
        return export_state_space(self._state_space)

    @classmethod
    def from_json(
        cls,
        data: Union[str, bytes, Sequence[Any]],
        *,
        use_token_map: bool = False,
        order: Optional[int] = None,
        rng: Optional[RandomSource] = None,
    ) -> "Chain":
        """
        Create a chain from serialized records or their JSON text.

        :param data: Records from :meth:`to_json`, or JSON text of them.
        :type data: str or bytes or Sequence[Any]
        :param use_token_map: Whether to build a token map.
        :type use_token_map: bool
        :param order: Order to use when there are no records.
        :type order: int or None
        :param rng: Optional random source.
        :type rng: RandomSource or None
        :return: New chain instance.
        :rtype: Chain
        :raises ChainConsistencyError: If the records are inconsistent.
        """
        records = json.loads(data) if isinstance(data, (str, bytes)) else data
        parsed_order, state_space = import_state_space(records, order=order)
        return cls(
            order=parsed_order,
            use_token_map=use_token_map,
            state_space=state_space,
            rng=rng,
        )

    def __repr__(self) -> str:
        return f"Chain(order={self._order}, states={len(self._state_space)})"


def _state_sort_key(state: State) -> str:
    return repr(state)


def validate_max_steps(max_steps: object) -> int:
    """
    Validate a walk step limit.

    :param max_steps: Candidate step limit.
    :type max_steps: object
    :return: Validated step limit.
    :rtype: int
    :raises ValueError: If the limit is not an integer of at least 1.
    """
    if isinstance(max_steps, bool) or not isinstance(max_steps, int) or max_steps < 1:
        raise ValueError(f"max_steps must be an integer >= 1 (got {max_steps!r})")
    return max_steps
