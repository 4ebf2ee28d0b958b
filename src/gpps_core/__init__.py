"""GPPS Core - Scope Store, immutability latch and node lifecycle."""
from .engine import NodeEngine
from .errors import GppsError, ImmutableScope, InvalidAction, NotFound, Unauthorized
from .ids import parse_node_id, scope_id
from .sentinel import is_immutable
from .store import Node, ScopeStore

__all__ = [
    "NodeEngine",
    "ScopeStore",
    "Node",
    "is_immutable",
    "scope_id",
    "parse_node_id",
    "GppsError",
    "Unauthorized",
    "NotFound",
    "ImmutableScope",
    "InvalidAction",
]
