"""RAM accounting for stored rows.

The scope owner pays when a node is created. Updates re-bill the same
payer for the size change, and removal refunds the whole row.
"""
from __future__ import annotations

from gpps_core.ids import serialized_size
from gpps_core.protocol import ROW_OVERHEAD_BYTES
from gpps_core.store import Node


def row_cost(data: bytes) -> int:
    return ROW_OVERHEAD_BYTES + serialized_size(data)


class RamLedger:
    def __init__(self):
        self.usage: dict[str, int] = {}

    def _charge(self, payer: str, delta: int) -> None:
        total = self.usage.get(payer, 0) + delta
        if total < 0:
            raise ValueError(f"RAM refund for {payer} exceeds its charges")
        if total:
            self.usage[payer] = total
        else:
            self.usage.pop(payer, None)

    def on_create(self, scope: str, node: Node) -> None:
        self._charge(node.payer, row_cost(node.data))

    def on_update(self, scope: str, node: Node, old_data: bytes) -> None:
        self._charge(node.payer, row_cost(node.data) - row_cost(old_data))

    def on_remove(self, scope: str, node: Node) -> None:
        self._charge(node.payer, -row_cost(node.data))

    def usage_of(self, payer: str) -> int:
        return self.usage.get(payer, 0)

    def summary(self) -> dict[str, int]:
        return dict(sorted(self.usage.items()))
