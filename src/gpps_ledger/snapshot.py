"""Parquet persistence for the Scope Store.

One row per node: (scope, id, data, payer), ordered by scope then id.
"""
from __future__ import annotations

import os
from pathlib import Path

import duckdb
import pyarrow as pa
import pyarrow.parquet as pq

from gpps_core.logging import get_logger
from gpps_core.protocol import MAX_NODE_ID, MIN_NODE_ID
from gpps_core.store import ScopeStore, StoreObserver

logger = get_logger(__name__)

SCHEMA = pa.schema(
    [
        ("scope", pa.string()),
        ("id", pa.uint64()),
        ("data", pa.binary()),
        ("payer", pa.string()),
    ]
)


def save_snapshot(store: ScopeStore, path: Path) -> None:
    path = Path(path)
    rows = [
        {"scope": scope, "id": node.id, "data": node.data, "payer": node.payer}
        for scope, node in store
    ]
    table = pa.Table.from_pylist(rows, schema=SCHEMA) if rows else SCHEMA.empty_table()

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    pq.write_table(table, tmp)
    os.replace(tmp, path)
    logger.debug("saved %d nodes to %s", len(rows), path)


def load_snapshot(path: Path, observers: list[StoreObserver] | None = None) -> ScopeStore:
    """Rebuild a store from a snapshot; observers see every row as a create."""
    store = ScopeStore(observers)
    path = Path(path)
    if not path.exists():
        return store

    table = pq.read_table(path)
    missing = [name for name in SCHEMA.names if name not in table.column_names]
    if missing:
        raise ValueError(f"FATAL: Snapshot {path} missing columns {missing}")
    for row in table.select(SCHEMA.names).to_pylist():
        store.insert(row["scope"], int(row["id"]), row["data"], payer=row["payer"])
    logger.debug("loaded %d nodes from %s", len(store), path)
    return store


def query_rows(
    path: Path, scope: str, lower: int = MIN_NODE_ID, upper: int = MAX_NODE_ID
) -> list[dict]:
    """Rows of one scope with lower <= id <= upper, read straight from the snapshot."""
    path = Path(path)
    if not path.exists():
        return []

    con = duckdb.connect(":memory:")
    try:
        src = str(path).replace("'", "''")
        sql = f"""
        SELECT id, data, payer
        FROM read_parquet('{src}')
        WHERE scope = ? AND id >= CAST(? AS UBIGINT) AND id <= CAST(? AS UBIGINT)
        ORDER BY id
        """
        df = con.execute(sql, [scope, str(lower), str(upper)]).fetchdf()
    finally:
        con.close()

    return [
        {"id": str(int(row.id)), "data": bytes(row.data).hex(), "payer": row.payer}
        for row in df.itertuples(index=False)
    ]
