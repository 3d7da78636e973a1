"""
Configuration loading utilities for markov-chainer.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

import yaml

from .models import ChainConfiguration


def _deep_merge(base: Dict[str, object], incoming: Mapping[str, object]) -> Dict[str, object]:
    merged = dict(base)
    for key, value in incoming.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(existing, value)
        else:
            merged[key] = value
    return merged


def apply_dotted_overrides(
    config: Mapping[str, object], overrides: Mapping[str, object]
) -> Dict[str, object]:
    """
    Apply dotted key overrides to a nested configuration mapping.

    A key such as ``run.back_search`` sets ``back_search`` inside the ``run`` mapping, creating
    intermediate mappings as needed.

    :param config: Base configuration mapping.
    :type config: Mapping[str, object]
    :param overrides: Dotted key override mapping.
    :type overrides: Mapping[str, object]
    :return: New configuration mapping with overrides applied.
    :rtype: dict[str, object]
    :raises ValueError: If an override key is empty.
    """
    updated: Dict[str, object] = copy.deepcopy(dict(config))
    for dotted_key, value in overrides.items():
        *parents, leaf = [part.strip() for part in str(dotted_key).split(".")]
        if not leaf or any(not part for part in parents):
            raise ValueError(f"Override keys must be non-empty dotted names (got {dotted_key!r})")
        target = updated
        for part in parents:
            nested = target.get(part)
            if not isinstance(nested, dict):
                nested = {}
                target[part] = nested
            target = nested
        target[leaf] = value
    return updated


def load_configuration_view(
    configuration_paths: Iterable[Union[str, Path]],
    *,
    configuration_label: str = "Configuration",
) -> Dict[str, object]:
    """
    Load a composed configuration view from one or more YAML files.

    Later files take precedence over earlier ones. Nested mappings are merged key by key.

    :param configuration_paths: Configuration file paths in precedence order.
    :type configuration_paths: Iterable[str or Path]
    :param configuration_label: Label used in error messages.
    :type configuration_label: str
    :return: Composed configuration view.
    :rtype: dict[str, object]
    :raises FileNotFoundError: If any configuration file is missing.
    :raises ValueError: If any configuration file is not a mapping.
    """
    paths = [Path(path) for path in configuration_paths]
    for candidate in paths:
        if not candidate.is_file():
            raise FileNotFoundError(f"{configuration_label} not found: {candidate}")
    view: Dict[str, object] = {}
    for candidate in paths:
        data = yaml.safe_load(candidate.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{configuration_label} must be a mapping/object: {candidate}")
        view = _deep_merge(view, data)
    return view


def load_chain_configuration(
    configuration_paths: Iterable[Union[str, Path]] = (),
    *,
    overrides: Optional[Mapping[str, object]] = None,
) -> ChainConfiguration:
    """
    Load and validate a chain configuration.

    :param configuration_paths: YAML configuration files in precedence order.
    :type configuration_paths: Iterable[str or Path]
    :param overrides: Optional dotted key overrides applied after the files.
    :type overrides: Mapping[str, object] or None
    :return: Validated chain configuration.
    :rtype: ChainConfiguration
    :raises pydantic.ValidationError: If the composed configuration is invalid.
    """
    view = load_configuration_view(configuration_paths, configuration_label="Chain configuration")
    if overrides:
        view = apply_dotted_overrides(view, overrides)
    return ChainConfiguration.model_validate(view)
