"""
markov-chainer public package interface.
"""

from .chain import Chain, Direction, RunResult
from .configuration import load_chain_configuration
from .errors import (
    ChainConsistencyError,
    ChainConstructionError,
    ChainError,
    WalkLimitExceededError,
)
from .models import ChainConfiguration, RunRequest
from .serialization import dumps, loads
from .tokens import BEGIN, END, BoolToken, CompositeToken, Sentinel

__all__ = [
    "__version__",
    "BEGIN",
    "BoolToken",
    "END",
    "Chain",
    "ChainConfiguration",
    "ChainConsistencyError",
    "ChainConstructionError",
    "ChainError",
    "CompositeToken",
    "Direction",
    "RunRequest",
    "RunResult",
    "Sentinel",
    "WalkLimitExceededError",
    "dumps",
    "load_chain_configuration",
    "loads",
]

__version__ = "1.0.0"
