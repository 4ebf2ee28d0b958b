"""Scope Store: scope -> node id -> bytes.

Scopes have no lifecycle of their own. A scope key appears with its first
node and is dropped with its last one.

Preconditions of insert/replace/remove are the engine's responsibility.
Breaking one is a programming error and raises KeyError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Protocol

from .ids import is_node_id
from .protocol import MAX_NODE_ID, MIN_NODE_ID


@dataclass
class Node:
    id: int
    data: bytes
    payer: str


class StoreObserver(Protocol):
    """Resource accounting hook called after each store mutation."""

    def on_create(self, scope: str, node: Node) -> None: ...

    def on_update(self, scope: str, node: Node, old_data: bytes) -> None: ...

    def on_remove(self, scope: str, node: Node) -> None: ...


class ScopeStore:
    def __init__(self, observers: list[StoreObserver] | None = None):
        self._scopes: dict[str, dict[int, Node]] = {}
        self.observers: list[StoreObserver] = list(observers or [])

    def lookup(self, scope: str, node_id: int) -> bytes | None:
        node = self._scopes.get(scope, {}).get(node_id)
        return None if node is None else node.data

    def node(self, scope: str, node_id: int) -> Node | None:
        return self._scopes.get(scope, {}).get(node_id)

    def insert(self, scope: str, node_id: int, data: bytes, payer: str | None = None) -> None:
        if not is_node_id(node_id):
            raise KeyError(f"Node id {node_id!r} outside the uint64 range")
        nodes = self._scopes.setdefault(scope, {})
        if node_id in nodes:
            raise KeyError(f"Node {node_id} already exists in scope {scope!r}")
        node = Node(id=node_id, data=bytes(data), payer=scope if payer is None else payer)
        nodes[node_id] = node
        for obs in self.observers:
            obs.on_create(scope, node)

    def replace(self, scope: str, node_id: int, data: bytes) -> None:
        node = self._require(scope, node_id)
        old = node.data
        node.data = bytes(data)
        for obs in self.observers:
            obs.on_update(scope, node, old)

    def remove(self, scope: str, node_id: int) -> None:
        self._require(scope, node_id)
        nodes = self._scopes[scope]
        node = nodes.pop(node_id)
        if not nodes:
            del self._scopes[scope]
        for obs in self.observers:
            obs.on_remove(scope, node)

    def _require(self, scope: str, node_id: int) -> Node:
        node = self.node(scope, node_id)
        if node is None:
            raise KeyError(f"Node {node_id} does not exist in scope {scope!r}")
        return node

    def scopes(self) -> list[str]:
        return sorted(self._scopes)

    def rows(
        self, scope: str, lower: int = MIN_NODE_ID, upper: int = MAX_NODE_ID
    ) -> list[Node]:
        """Nodes of one scope with lower <= id <= upper, ordered by id."""
        nodes = self._scopes.get(scope, {})
        return [nodes[i] for i in sorted(nodes) if lower <= i <= upper]

    def __iter__(self) -> Iterator[tuple[str, Node]]:
        for scope in self.scopes():
            for node in self.rows(scope):
                yield scope, node

    def __len__(self) -> int:
        return sum(len(nodes) for nodes in self._scopes.values())
