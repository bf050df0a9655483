"""Continuation helpers for pending results (asyncio futures and tasks)."""

from .future import (
    Continuation,
    Settled,
    SettledStatus,
    and_then,
    fulfilled,
    on_complete,
    rejected,
    settle,
)

__all__ = [
    "Continuation",
    "Settled",
    "SettledStatus",
    "and_then",
    "fulfilled",
    "on_complete",
    "rejected",
    "settle",
]
