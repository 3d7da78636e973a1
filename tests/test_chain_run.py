"""
Unit tests for start-state resolution and chain runs.
"""

from __future__ import annotations

import random
import unittest

from markov_chainer import Chain, RunRequest, RunResult
from markov_chainer.tokens import BEGIN, BoolToken, canonical_token

CORPUS = [
    ["Hello", "world", "of", "Markov", "chains"],
    ["These", "are", "my", "process'", "tokens"],
    ["This", "can", "be", "any", "JSON", "data"],
    ["I", "can", "use", "other", {"a": "types"}],
]


class TestResolveStartState(unittest.TestCase):
    """
    Unit tests for start-state resolution.
    """

    def test_short_input_is_left_padded_with_begin(self) -> None:
        """
        Ensure inputs shorter than a state match windows that start at BEGIN.
        """
        chain = Chain([["x", "y"]], order=1)
        self.assertEqual(chain.resolve_start_state(["x"]), (BEGIN, "x"))

    def test_long_input_matches_an_inner_window(self) -> None:
        """
        Ensure any known window of a long input can become the start state.
        """
        chain = Chain(CORPUS, order=1, rng=random.Random(3))
        candidates = {("world", "of"), ("of", "Markov")}
        for _ in range(20):
            state = chain.resolve_start_state(["nope", "world", "of", "Markov", "nope"])
            self.assertIn(state, candidates)

    def test_bare_initial_state_is_not_a_candidate(self) -> None:
        """
        Ensure an empty input resolves to the initial state only as the fallback.
        """
        chain = Chain([["x", "y"]], order=1)
        self.assertEqual(chain.resolve_start_state([]), chain.initial_state)

    def test_token_map_fallback(self) -> None:
        """
        Ensure a single known token resolves to a state containing it.
        """
        chain = Chain(CORPUS, order=1, use_token_map=True, rng=random.Random(5))
        for _ in range(20):
            state = chain.resolve_start_state(["unknown", "Markov"])
            self.assertIn("Markov", state)

    def test_token_map_fallback_can_be_disabled(self) -> None:
        """
        Ensure the token map is ignored when disabled for the query.
        """
        chain = Chain(CORPUS, order=1, use_token_map=True)
        state = chain.resolve_start_state(["unknown", "Markov"], use_token_map=False)
        self.assertEqual(state, chain.initial_state)

    def test_composite_tokens_resolve(self) -> None:
        """
        Ensure composite input tokens match states structurally.
        """
        chain = Chain(CORPUS, order=1)
        state = chain.resolve_start_state(["other", {"a": "types"}])
        self.assertEqual(state, ("other", canonical_token({"a": "types"})))


class TestRun(unittest.TestCase):
    """
    Unit tests for chain runs.
    """

    def test_empty_chain_returns_empty_steps(self) -> None:
        """
        Ensure a chain without data produces no steps.
        """
        self.assertEqual(Chain([]).run(), ([], [], []))

    def test_result_is_a_three_tuple(self) -> None:
        """
        Ensure run results unpack into three sequences.
        """
        result = Chain([["x", "y"]], order=1).run()
        self.assertIsInstance(result, RunResult)
        back_steps, root_tokens, forward_steps = result
        self.assertEqual((back_steps, root_tokens, forward_steps), ([], [], ["x", "y"]))

    def test_run_from_matched_window(self) -> None:
        """
        Ensure a matched input window is returned as root tokens.
        """
        chain = Chain([["x", "y"]], order=1)
        self.assertEqual(chain.run(["x"]), ([], ["x"], ["y"]))

    def test_run_walks_both_directions(self) -> None:
        """
        Ensure backward steps are returned in reading order.
        """
        chain = Chain([["a", "b", "c", "d"]], order=0)
        self.assertEqual(chain.run(["c"]), (["a", "b"], ["c"], ["d"]))

    def test_back_search_can_be_disabled(self) -> None:
        """
        Ensure backward walks are skipped when back search is off.
        """
        chain = Chain([["a", "b", "c", "d"]], order=0)
        self.assertEqual(chain.run(["c"], back_search=False), ([], ["c"], ["d"]))

    def test_missing_tokens_are_refused_when_requested(self) -> None:
        """
        Ensure off-corpus input yields no answer when missing tokens should not run.
        """
        chain = Chain([["x", "y"]], order=1, use_token_map=True)
        self.assertEqual(chain.run(["b"], run_missing_tokens=False), ([], [], []))

    def test_missing_tokens_run_from_initial_state_by_default(self) -> None:
        """
        Ensure off-corpus input falls back to a walk from the initial state.
        """
        chain = Chain([["x", "y"]], order=1)
        self.assertEqual(chain.run(["b"]), ([], [], ["x", "y"]))

    def test_empty_input_still_runs_when_missing_tokens_are_refused(self) -> None:
        """
        Ensure the refusal only applies to non-empty input.
        """
        chain = Chain([["x", "y"]], order=1)
        self.assertEqual(chain.run([], run_missing_tokens=False), ([], [], ["x", "y"]))

    def test_token_map_run_stays_on_topic(self) -> None:
        """
        Ensure a token map fallback produces a reply around the known token.
        """
        chain = Chain([["a", "b", "c", "d"]], order=1, use_token_map=True, rng=random.Random(8))
        for _ in range(20):
            back_steps, root_tokens, forward_steps = chain.run(
                ["c", "z"], run_missing_tokens=False
            )
            self.assertIn("c", root_tokens)
            self.assertEqual(back_steps + root_tokens + forward_steps, ["a", "b", "c", "d"])

    def test_isolated_state_yields_no_root_tokens(self) -> None:
        """
        Ensure root tokens are omitted when neither direction produced steps.
        """
        chain = Chain([["x", "y"]], order=1, use_token_map=True)
        self.assertEqual(chain.run(["y"]), ([], [], []))

    def test_composite_tokens_in_output(self) -> None:
        """
        Ensure composite tokens are restored in every part of the result.
        """
        chain = Chain(CORPUS, order=1)
        self.assertEqual(
            chain.run(["use", "other"]),
            (["I", "can"], ["use", "other"], [{"a": "types"}]),
        )

    def test_boolean_and_numeric_tokens_stay_apart(self) -> None:
        """
        Ensure True and 1 are separate tokens with their own transitions.
        """
        chain = Chain([[1, "a"], [True, "b"]])
        self.assertEqual(chain.state_space[(BEGIN,)].next, {1: 1, BoolToken(True): 1})
        self.assertEqual(chain.run([1]), ([], [1], ["a"]))
        back_steps, root_tokens, forward_steps = chain.run([True])
        self.assertEqual((back_steps, forward_steps), ([], ["b"]))
        self.assertEqual(len(root_tokens), 1)
        self.assertIs(root_tokens[0], True)

    def test_run_rejects_step_limits_below_one(self) -> None:
        """
        Ensure a run refuses a step limit that could never yield a token.
        """
        chain = Chain([["x", "y"]], order=1)
        for max_steps in [0, -1]:
            with self.assertRaises(ValueError):
                chain.run(["x"], max_steps=max_steps)

    def test_run_request_applies_defaults(self) -> None:
        """
        Ensure request mappings are layered over configured run defaults.
        """
        chain = Chain.from_configuration(
            [["a", "b", "c"]], {"order": 0, "run": {"back_search": False}}
        )
        self.assertEqual(chain.run_request({"tokens": ["b"]}), ([], ["b"], ["c"]))
        self.assertEqual(
            chain.run_request(RunRequest(tokens=["b"])),
            (["a"], ["b"], ["c"]),
        )


if __name__ == "__main__":
    unittest.main()
