"""Signed RematchTracker client and multi-platform player lookup."""

from .errors import (
    ExtractionFailed,
    ParseFailure,
    RematchError,
    TransportError,
    UnauthorizedRetryExhausted,
)
from .profiles import PlayerStats, ResolvedProfile
from .resolver import PlayerResolver, make_resolver

__all__ = [
    "ExtractionFailed",
    "ParseFailure",
    "PlayerResolver",
    "PlayerStats",
    "RematchError",
    "ResolvedProfile",
    "TransportError",
    "UnauthorizedRetryExhausted",
    "make_resolver",
]
