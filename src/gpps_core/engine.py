"""Node Mutation Engine: the set/delete lifecycle over a Scope Store.

Callers must already have authorized the owner of `scope`. Each call either
applies exactly one store mutation or raises with the store untouched.
"""
from __future__ import annotations

from .errors import ImmutableScope, NotFound
from .ids import is_node_id
from .logging import get_logger
from .protocol import LOCK_NODE_ID
from .sentinel import is_immutable, is_sentinel
from .store import ScopeStore

logger = get_logger(__name__)

CREATED = "created"
UPDATED = "updated"
DELETED = "deleted"


def _require_node_id(node_id) -> None:
    if not is_node_id(node_id):
        raise ValueError(f"Node id {node_id!r} is not an unsigned 64-bit integer")


class NodeEngine:
    def __init__(self, store: ScopeStore | None = None):
        self.store = store if store is not None else ScopeStore()

    def is_immutable(self, scope: str) -> bool:
        return is_immutable(self.store, scope)

    def set(self, scope: str, node_id: int, data: bytes) -> str:
        """Write a node, creating it if absent.

        Creation is always allowed, even in a frozen scope. Updating an
        existing node raises ImmutableScope once the scope is frozen.
        """
        _require_node_id(node_id)
        # memoryview refuses ints, which bytes() would zero-fill
        data = memoryview(data).tobytes()
        if self.store.lookup(scope, node_id) is None:
            self.store.insert(scope, node_id, data)
            logger.debug("created node %d in %s (%d bytes)", node_id, scope, len(data))
            if node_id == LOCK_NODE_ID and is_sentinel(data):
                logger.info("scope %s is now immutable", scope)
            return CREATED

        if self.is_immutable(scope):
            logger.warning("rejected update of node %d in immutable scope %s", node_id, scope)
            raise ImmutableScope(scope=scope, id=str(node_id))
        self.store.replace(scope, node_id, data)
        logger.debug("updated node %d in %s (%d bytes)", node_id, scope, len(data))
        if node_id == LOCK_NODE_ID and is_sentinel(data):
            logger.info("scope %s is now immutable", scope)
        return UPDATED

    def delete(self, scope: str, node_id: int) -> str:
        _require_node_id(node_id)
        if self.store.lookup(scope, node_id) is None:
            raise NotFound(scope=scope, id=str(node_id))
        if self.is_immutable(scope):
            logger.warning("rejected delete of node %d in immutable scope %s", node_id, scope)
            raise ImmutableScope(scope=scope, id=str(node_id))
        self.store.remove(scope, node_id)
        logger.debug("deleted node %d in %s", node_id, scope)
        return DELETED
