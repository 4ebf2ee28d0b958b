"""Split large payloads over a contiguous node id range, and join them back."""
from __future__ import annotations

from typing import Iterable

from .protocol import DEFAULT_CHUNK_SIZE, MAX_NODE_ID
from .store import Node


def split_chunks(
    payload: bytes, first_id: int, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> list[tuple[int, bytes]]:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    payload = bytes(payload)
    pieces = [payload[i:i + chunk_size] for i in range(0, len(payload), chunk_size)] or [b""]
    last_id = first_id + len(pieces) - 1
    if first_id < 0 or last_id > MAX_NODE_ID:
        raise ValueError(f"Id range {first_id}..{last_id} does not fit in uint64")
    return [(first_id + n, piece) for n, piece in enumerate(pieces)]


def join_chunks(rows: Iterable[Node | tuple[int, bytes]]) -> bytes:
    pairs = sorted(
        (r.id, r.data) if isinstance(r, Node) else (int(r[0]), bytes(r[1])) for r in rows
    )
    expected = None
    out = bytearray()
    for node_id, data in pairs:
        if expected is not None and node_id != expected:
            raise ValueError(f"Gap in chunk range: expected node {expected}, found {node_id}")
        out += data
        expected = node_id + 1
    return bytes(out)
