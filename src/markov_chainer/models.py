"""
Pydantic models for chain configuration and run requests.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import CHAIN_SCHEMA_VERSION, DEFAULT_ORDER


class RunRequest(BaseModel):
    """
    Options for a single chain run.

    :ivar tokens: Partial input used to find the start state.
    :vartype tokens: list[Any]
    :ivar back_search: Whether to also walk backward from the start state.
    :vartype back_search: bool
    :ivar use_token_map: Whether to fall back to the token map when no window matches.
    :vartype use_token_map: bool
    :ivar run_missing_tokens: Whether to generate output when the input cannot be matched.
    :vartype run_missing_tokens: bool
    :ivar max_steps: Optional per-direction step limit.
    :vartype max_steps: int or None
    """

    model_config = ConfigDict(extra="forbid")

    tokens: List[Any] = Field(default_factory=list)
    back_search: bool = True
    use_token_map: bool = True
    run_missing_tokens: bool = True
    max_steps: Optional[int] = Field(default=None, ge=1)


class ChainConfiguration(BaseModel):
    """
    Configuration used to build a chain.

    :ivar schema_version: Configuration schema version.
    :vartype schema_version: int
    :ivar order: Size of the chain's memory.
    :vartype order: int
    :ivar use_token_map: Whether to build a token map for relevance fallback.
    :vartype use_token_map: bool
    :ivar max_steps: Optional default step limit for walks.
    :vartype max_steps: int or None
    :ivar run: Default run options.
    :vartype run: RunRequest
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=CHAIN_SCHEMA_VERSION, ge=1)
    order: int = Field(default=DEFAULT_ORDER, ge=0)
    use_token_map: bool = False
    max_steps: Optional[int] = Field(default=None, ge=1)
    run: RunRequest = Field(default_factory=RunRequest)

    @model_validator(mode="after")
    def _validate_schema_version(self) -> "ChainConfiguration":
        if self.schema_version != CHAIN_SCHEMA_VERSION:
            raise ValueError(f"Unsupported chain schema version: {self.schema_version}")
        return self
