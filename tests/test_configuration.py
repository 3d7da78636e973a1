"""
Configuration loading tests for markov-chainer.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from markov_chainer import Chain, ChainConfiguration
from markov_chainer.configuration import apply_dotted_overrides, load_chain_configuration


def _write(path, text: str):
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_files() -> None:
    configuration = load_chain_configuration()
    assert configuration == ChainConfiguration()
    assert configuration.order == 0
    assert configuration.run.back_search is True


def test_later_files_take_precedence(tmp_path) -> None:
    base = _write(tmp_path / "base.yml", "order: 1\nrun:\n  back_search: false\n  tokens: [a]\n")
    local = _write(tmp_path / "local.yml", "use_token_map: true\nrun:\n  tokens: [b]\n")
    configuration = load_chain_configuration([base, local])
    assert configuration.order == 1
    assert configuration.use_token_map is True
    assert configuration.run.back_search is False
    assert configuration.run.tokens == ["b"]


def test_overrides_apply_after_files(tmp_path) -> None:
    base = _write(tmp_path / "base.yml", "order: 1\n")
    overrides = {"order": 2, "run.run_missing_tokens": False, "max_steps": 50}
    configuration = load_chain_configuration([base], overrides=overrides)
    assert configuration.order == 2
    assert configuration.max_steps == 50
    assert configuration.run.run_missing_tokens is False


def test_apply_dotted_overrides_does_not_mutate() -> None:
    base = {"run": {"tokens": ["a"]}}
    updated = apply_dotted_overrides(base, {"run.back_search": False})
    assert updated == {"run": {"tokens": ["a"], "back_search": False}}
    assert base == {"run": {"tokens": ["a"]}}


def test_missing_file_is_reported(tmp_path) -> None:
    with pytest.raises(FileNotFoundError, match="Chain configuration not found"):
        load_chain_configuration([tmp_path / "absent.yml"])


def test_non_mapping_file_is_rejected(tmp_path) -> None:
    path = _write(tmp_path / "list.yml", "- 1\n- 2\n")
    with pytest.raises(ValueError, match="must be a mapping"):
        load_chain_configuration([path])


def test_invalid_values_are_rejected(tmp_path) -> None:
    with pytest.raises(ValidationError):
        load_chain_configuration([_write(tmp_path / "neg.yml", "order: -1\n")])
    with pytest.raises(ValidationError):
        load_chain_configuration([_write(tmp_path / "extra.yml", "stateSize: 2\n")])
    with pytest.raises(ValidationError, match="Unsupported chain schema version"):
        load_chain_configuration([_write(tmp_path / "schema.yml", "schema_version: 9\n")])


def test_configuration_builds_chain(tmp_path) -> None:
    path = _write(tmp_path / "chain.yml", "order: 1\nuse_token_map: true\n")
    chain = Chain.from_configuration([["x", "y"]], load_chain_configuration([path]))
    assert chain.order == 1
    assert chain.token_map is not None
    assert chain.run(["x"]) == ([], ["x"], ["y"])


def test_apply_dotted_overrides_replaces_scalars_with_mappings() -> None:
    updated = apply_dotted_overrides({"run": True}, {"run.tokens": ["a"]})
    assert updated == {"run": {"tokens": ["a"]}}


def test_apply_dotted_overrides_rejects_empty_keys() -> None:
    with pytest.raises(ValueError, match="non-empty dotted names"):
        apply_dotted_overrides({}, {"run..tokens": 1})
