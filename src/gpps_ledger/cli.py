"""GPPS - command-line surface over a parquet-backed Scope Store."""
from __future__ import annotations

import json
from pathlib import Path

import click

from gpps_core.chunks import join_chunks, split_chunks
from gpps_core.config import Settings
from gpps_core.engine import NodeEngine
from gpps_core.errors import GppsError
from gpps_core.ids import parse_node_id, scope_id
from gpps_core.logging import get_logger
from gpps_core.protocol import ACTION_DEL, ACTION_SET, LOCK_NODE_ID, LOCK_SENTINEL, MAX_NODE_ID
from gpps_verify.crypto import new_seed, public_key
from gpps_verify.logic import Gateway, make_action, sign_action

from .ram import RamLedger
from .snapshot import load_snapshot, query_rows, save_snapshot

logger = get_logger(__name__)


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


class Session:
    """One CLI invocation: load the snapshot, apply, save only on success."""

    def __init__(self, store_path: Path):
        self.store_path = Path(store_path)
        self.ledger = RamLedger()
        self.store = load_snapshot(self.store_path, observers=[self.ledger])
        self.engine = NodeEngine(self.store)
        self.gateway = Gateway(self.engine)

    def commit(self) -> None:
        save_snapshot(self.store, self.store_path)


def _read_seed(key: Path) -> bytes:
    seed = bytes.fromhex(key.read_text(encoding="utf-8").strip())
    if len(seed) != 32:
        raise ValueError(f"Key file {key} must hold a 32-byte hex seed")
    return seed


def _node_id(value: str) -> int:
    try:
        return parse_node_id(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _hex(value: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise click.BadParameter(f"not hex: {e}")


def _run(fn):
    """Fail closed with a single-line reason."""
    try:
        return fn()
    except GppsError as e:
        click.echo(f"FATAL: {e.code}: {e}")
        raise SystemExit(1)
    except (ValueError, OSError) as e:
        click.echo(f"FATAL: {e}")
        raise SystemExit(1)


def _apply(ctx: click.Context, envelopes: list[dict]) -> list[str]:
    session = Session(ctx.obj.store_path)
    outcomes = [session.gateway.push(env) for env in envelopes]
    session.commit()
    for env, outcome in zip(envelopes, outcomes):
        act = env["action"]
        logger.info("%s %s/%s: %s", act["action"], act["owner"], act["id"], outcome)
    return outcomes


key_option = click.option(
    "--key",
    "key",
    envvar="GPPS_KEY",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File holding the owner's hex signing seed",
)


@click.group()
@click.option(
    "--store",
    "store",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Parquet snapshot holding all scopes (default: $GPPS_STORE or gpps_nodes.parquet)",
)
@click.pass_context
def main(ctx: click.Context, store: Path | None) -> None:
    """General Purpose Permanent Storage."""
    settings = Settings.from_env()
    if store is not None:
        settings.store_path = store
    if settings.log_level:
        logger.setLevel(settings.log_level)
    ctx.obj = settings


@main.command("keygen")
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
def keygen_cmd(out: Path) -> None:
    """Write a new signing seed and print the scope it owns."""
    if out.exists():
        raise click.ClickException(f"{out} already exists")
    seed = new_seed()
    out.write_text(seed.hex() + "\n", encoding="utf-8")
    pub = public_key(seed)
    _echo_json({"scope": scope_id(pub), "public_key": pub.hex()})


@main.command("whoami")
@key_option
def whoami_cmd(key: Path) -> None:
    pub = _run(lambda: public_key(_read_seed(key)))
    _echo_json({"scope": scope_id(pub), "public_key": pub.hex()})


@main.command("sign")
@click.argument("action", type=click.Choice([ACTION_SET, ACTION_DEL]))
@click.argument("owner")
@click.argument("node_id")
@click.argument("data", required=False, default="")
@key_option
def sign_cmd(action: str, owner: str, node_id: str, data: str, key: Path) -> None:
    """Print a signed action envelope for OWNER without applying it."""
    nid = _node_id(node_id)
    payload = _hex(data)
    seed = _run(lambda: _read_seed(key))
    _echo_json(sign_action(seed, make_action(action, owner, nid, payload)))


@main.command("push")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def push_cmd(ctx: click.Context, path: Path) -> None:
    """Apply a signed action envelope."""
    envelope = _run(lambda: json.loads(path.read_text(encoding="utf-8")))
    outcome = _run(lambda: _apply(ctx, [envelope]))[0]
    _echo_json({"status": outcome})


@main.command("set")
@click.argument("owner")
@click.argument("node_id")
@click.argument("data")
@key_option
@click.pass_context
def set_cmd(ctx: click.Context, owner: str, node_id: str, data: str, key: Path) -> None:
    """Write hex DATA to node NODE_ID of OWNER's scope."""
    nid = _node_id(node_id)
    payload = _hex(data)
    seed = _run(lambda: _read_seed(key))
    envelope = sign_action(seed, make_action(ACTION_SET, owner, nid, payload))
    outcome = _run(lambda: _apply(ctx, [envelope]))[0]
    _echo_json({"status": outcome, "owner": owner, "id": str(nid)})


@main.command("del")
@click.argument("owner")
@click.argument("node_id")
@key_option
@click.pass_context
def del_cmd(ctx: click.Context, owner: str, node_id: str, key: Path) -> None:
    """Erase node NODE_ID of OWNER's scope, refunding its RAM."""
    nid = _node_id(node_id)
    seed = _run(lambda: _read_seed(key))
    envelope = sign_action(seed, make_action(ACTION_DEL, owner, nid))
    outcome = _run(lambda: _apply(ctx, [envelope]))[0]
    _echo_json({"status": outcome, "owner": owner, "id": str(nid)})


@main.command("lock")
@click.argument("owner")
@key_option
@click.pass_context
def lock_cmd(ctx: click.Context, owner: str, key: Path) -> None:
    """Make OWNER's scope immutable by writing DEAD to node 0."""
    seed = _run(lambda: _read_seed(key))
    envelope = sign_action(seed, make_action(ACTION_SET, owner, LOCK_NODE_ID, LOCK_SENTINEL))
    outcome = _run(lambda: _apply(ctx, [envelope]))[0]
    _echo_json({"status": outcome, "owner": owner, "immutable": True})


@main.command("get-table")
@click.argument("scope")
@click.option("-L", "--lower", "lower", default="0", help="Lowest node id (inclusive)")
@click.option("-U", "--upper", "upper", default=None, help="Highest node id (inclusive)")
@click.pass_context
def get_table_cmd(ctx: click.Context, scope: str, lower: str, upper: str | None) -> None:
    lo = _node_id(lower)
    hi = _node_id(upper) if upper is not None else MAX_NODE_ID
    rows = _run(lambda: query_rows(ctx.obj.store_path, scope, lo, hi))
    _echo_json({"scope": scope, "rows": rows})


@main.command("put-file")
@click.argument("owner")
@click.argument("first_id")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--chunk-size", type=int, default=None, help="Bytes per node (default: $GPPS_CHUNK_SIZE or 8192)")
@key_option
@click.pass_context
def put_file_cmd(
    ctx: click.Context, owner: str, first_id: str, path: Path, chunk_size: int | None, key: Path
) -> None:
    """Store a file as nodes over a contiguous id range.

    Nothing is saved unless every chunk is accepted.
    """
    nid = _node_id(first_id)
    size = chunk_size if chunk_size is not None else ctx.obj.chunk_size
    seed = _run(lambda: _read_seed(key))
    chunks = _run(lambda: split_chunks(path.read_bytes(), nid, size))
    envelopes = [sign_action(seed, make_action(ACTION_SET, owner, i, piece)) for i, piece in chunks]
    _run(lambda: _apply(ctx, envelopes))
    _echo_json({"owner": owner, "lower": str(chunks[0][0]), "upper": str(chunks[-1][0]), "nodes": len(chunks)})


@main.command("get-file")
@click.argument("scope")
@click.argument("lower")
@click.argument("upper")
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def get_file_cmd(ctx: click.Context, scope: str, lower: str, upper: str, out: Path) -> None:
    """Reassemble nodes LOWER..UPPER of SCOPE into OUT."""
    lo, hi = _node_id(lower), _node_id(upper)

    def _load() -> bytes:
        rows = load_snapshot(ctx.obj.store_path).rows(scope, lo, hi)
        if not rows:
            raise ValueError(f"No nodes in {scope} between {lo} and {hi}")
        if rows[0].id != lo or rows[-1].id != hi:
            raise ValueError(f"Nodes of {scope} do not cover {lo}..{hi}")
        return join_chunks(rows)

    data = _run(_load)
    out.write_bytes(data)
    _echo_json({"scope": scope, "bytes": len(data), "out": str(out)})


@main.command("usage")
@click.pass_context
def usage_cmd(ctx: click.Context) -> None:
    """RAM bytes billed to each payer."""
    session = _run(lambda: Session(ctx.obj.store_path))
    _echo_json(session.ledger.summary())


if __name__ == "__main__":
    main()
