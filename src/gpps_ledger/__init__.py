"""GPPS Ledger - persistence and RAM accounting for the Scope Store."""
from .ram import RamLedger, row_cost
from .snapshot import load_snapshot, query_rows, save_snapshot

__all__ = ["RamLedger", "row_cost", "load_snapshot", "save_snapshot", "query_rows"]
