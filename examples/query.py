"""List the scopes of a snapshot and whether each one is frozen."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python query.py <snapshot.parquet> [scope]")
        print("Example: python query.py gpps_nodes.parquet")
        sys.exit(1)

    snapshot = Path(sys.argv[1])
    scope = sys.argv[2] if len(sys.argv) > 2 else None

    con = duckdb.connect(":memory:")
    con.execute(f"CREATE VIEW nodes AS SELECT * FROM '{snapshot}'")

    # A scope is frozen when node 0 holds exactly DE AD
    sql = """
    SELECT
        scope,
        count(*) AS nodes,
        sum(octet_length(data)) AS bytes,
        bool_or(id = 0 AND data = '\\xDE\\xAD'::BLOB) AS immutable
    FROM nodes
    GROUP BY scope
    ORDER BY scope
    """

    df = con.execute(sql).fetchdf()
    if scope is not None:
        df = df[df["scope"] == scope]

    print(f"--- Scopes in {snapshot} ---\n")
    if df.empty:
        print("No nodes found.")
    else:
        for _, row in df.iterrows():
            state = "IMMUTABLE" if row["immutable"] else "mutable"
            print(f"SCOPE: {row['scope']}")
            print(f"  Nodes: {row['nodes']}")
            print(f"  Bytes: {row['bytes']}")
            print(f"  State: {state}")
            print()


if __name__ == "__main__":
    main()
