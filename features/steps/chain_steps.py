from __future__ import annotations

import json
from typing import Any, Callable

from behave import given, then, when

from markov_chainer import (
    Chain,
    ChainConsistencyError,
    WalkLimitExceededError,
    dumps,
    loads,
)
from markov_chainer.state_space import Transitions


def _record_error(context, func: Callable[[], Any]) -> None:
    try:
        func()
        context.last_error = None
    except Exception as exc:  # noqa: BLE001 - BDD asserts error type and message explicitly
        context.last_error = exc


@given("a chain of order {order:d} built from no runs")
def step_chain_without_runs(context, order: int) -> None:
    context.chain = Chain([], order=order, rng=context.rng)


@given("a chain of order {order:d} built from runs:")
def step_chain_from_runs(context, order: int) -> None:
    corpus = json.loads(str(context.text or "[]"))
    context.chain = Chain(corpus, order=order, rng=context.rng)


@given("a chain of order {order:d} with a token map built from runs:")
def step_chain_with_token_map_from_runs(context, order: int) -> None:
    corpus = json.loads(str(context.text or "[]"))
    context.chain = Chain(corpus, order=order, use_token_map=True, rng=context.rng)


@given('a cyclic chain over the token "{token}"')
def step_cyclic_chain(context, token: str) -> None:
    state_space = {(token,): Transitions(next={token: 1}, prev={token: 1})}
    context.chain = Chain(state_space=state_space, rng=context.rng)


@when("I run the chain with no tokens")
def step_run_without_tokens(context) -> None:
    context.run_result = context.chain.run()


@when("I run the chain with tokens {tokens}")
def step_run_with_tokens(context, tokens: str) -> None:
    context.run_result = context.chain.run(json.loads(tokens))


@when("I run the chain refusing missing tokens with tokens {tokens}")
def step_run_refusing_missing_tokens(context, tokens: str) -> None:
    context.run_result = context.chain.run(json.loads(tokens), run_missing_tokens=False)


@when("I attempt to run the chain with tokens {tokens} and max steps {max_steps:d}")
def step_attempt_run_with_max_steps(context, tokens: str, max_steps: int) -> None:
    _record_error(context, lambda: context.chain.run(json.loads(tokens), max_steps=max_steps))


@then("the backward steps are {expected}")
def step_backward_steps(context, expected: str) -> None:
    assert context.run_result.back_steps == json.loads(expected), context.run_result


@then("the root tokens are {expected}")
def step_root_tokens(context, expected: str) -> None:
    assert context.run_result.root_tokens == json.loads(expected), context.run_result


@then("the forward steps are {expected}")
def step_forward_steps(context, expected: str) -> None:
    assert context.run_result.forward_steps == json.loads(expected), context.run_result


@then("the joined steps are {expected}")
def step_joined_steps(context, expected: str) -> None:
    back_steps, root_tokens, forward_steps = context.run_result
    assert back_steps + root_tokens + forward_steps == json.loads(expected), context.run_result


@then("the run fails with a walk limit error")
def step_run_fails_with_walk_limit(context) -> None:
    assert isinstance(context.last_error, WalkLimitExceededError), context.last_error


@when("I serialize the chain and load it")
def step_serialize_and_load(context) -> None:
    context.serialized_text = dumps(context.chain)
    context.loaded_chain = loads(context.serialized_text)


@when("I serialize the chain and load it with a token map")
def step_serialize_and_load_with_token_map(context) -> None:
    context.serialized_text = dumps(context.chain)
    context.loaded_chain = loads(context.serialized_text, use_token_map=True)


@when("I attempt to load serialized records:")
def step_attempt_load_records(context) -> None:
    text = str(context.text or "[]")
    _record_error(context, lambda: loads(text))


@then("the loaded chain has the same order")
def step_loaded_same_order(context) -> None:
    assert context.loaded_chain.order == context.chain.order


@then("the loaded chain has the same state space")
def step_loaded_same_state_space(context) -> None:
    assert context.loaded_chain.state_space == context.chain.state_space


@then("the loaded chain has the same token map")
def step_loaded_same_token_map(context) -> None:
    assert context.loaded_chain.token_map is not None
    assert context.loaded_chain.token_map == context.chain.token_map


@then('the serialized text contains "{fragment}"')
def step_serialized_text_contains(context, fragment: str) -> None:
    assert fragment in context.serialized_text, context.serialized_text


@then("loading fails with a consistency error expecting length {expected:d} but got {actual:d}")
def step_loading_fails_with_consistency_error(context, expected: int, actual: int) -> None:
    error = context.last_error
    assert isinstance(error, ChainConsistencyError), error
    assert error.expected == expected
    assert error.actual == actual
