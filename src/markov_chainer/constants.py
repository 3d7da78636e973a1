"""
Shared constants for markov-chainer.
"""

CHAIN_SCHEMA_VERSION = 1
DEFAULT_ORDER = 0
BEGIN_MARKER = "@@BEGIN"
END_MARKER = "@@END"
ESCAPE_PREFIX = "@@"
COMPOSITE_PREFIX = "@@JSON:"
