"""GPPS - Deterministic identity and id helpers."""
from __future__ import annotations

import base64
import hashlib

from .protocol import ID_FIELD_BYTES, MAX_NODE_ID, MIN_NODE_ID


def _hash(b: bytes, prefix: str) -> str:
    """Compute truncated SHA-256 hash with base32 encoding."""
    h = hashlib.sha256(b).digest()[:15]
    return prefix + base64.b32encode(h).decode("ascii").lower().rstrip("=")


def scope_id(public_key: bytes) -> str:
    """Derive the owner scope for an ed25519 public key."""
    return _hash(bytes(public_key), "k_")


def is_node_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MIN_NODE_ID <= value <= MAX_NODE_ID


def parse_node_id(text: str | int) -> int:
    """Parse a decimal node id, as ids travel as strings on the wire."""
    if isinstance(text, bool):
        raise ValueError(f"Invalid node id {text!r}")
    if isinstance(text, int):
        value = text
    else:
        s = str(text).strip()
        if not (s.isascii() and s.isdigit()):
            raise ValueError(f"Invalid node id {text!r}")
        value = int(s)
    if not is_node_id(value):
        raise ValueError(f"Node id {value} outside [{MIN_NODE_ID}, {MAX_NODE_ID}]")
    return value


def serialized_size(data: bytes) -> int:
    """Packed size of an (id, data) row: id + varuint32 length + payload."""
    n = len(data)
    prefix = 1
    while n >= 0x80:
        n >>= 7
        prefix += 1
    return ID_FIELD_BYTES + prefix + len(data)
