"""Immutability latch.

A scope is frozen when node 0 holds exactly b"\\xde\\xad". The check is
re-derived from node 0 every time; there is no stored flag.
A legitimate 2-byte payload of DE AD at id 0 locks the scope as well.
"""
from __future__ import annotations

from .protocol import LOCK_NODE_ID, LOCK_SENTINEL
from .store import ScopeStore


def is_sentinel(data: bytes | None) -> bool:
    return data is not None and bytes(data) == LOCK_SENTINEL


def is_immutable(store: ScopeStore, scope: str) -> bool:
    return is_sentinel(store.lookup(scope, LOCK_NODE_ID))
