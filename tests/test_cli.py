import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from gpps_ledger.cli import main as gpps
from gpps_verify.cli import main as gpps_verify

from conftest import ALICE_SEED, BOB_SEED


def _json(result):
    return json.loads(result.output.strip().splitlines()[-1])


@pytest.fixture
def env(tmp_path):
    alice_key = tmp_path / "alice.key"
    alice_key.write_text(ALICE_SEED.hex() + "\n", encoding="utf-8")
    bob_key = tmp_path / "bob.key"
    bob_key.write_text(BOB_SEED.hex(), encoding="utf-8")
    return {
        "store": str(tmp_path / "nodes.parquet"),
        "alice": str(alice_key),
        "bob": str(bob_key),
        "tmp": tmp_path,
    }


@pytest.fixture
def cli(env):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(gpps, ["--store", env["store"], *args])

    return invoke


def _scope(cli, key):
    result = cli("whoami", "--key", key)
    assert result.exit_code == 0, result.output
    return _json(result)["scope"]


def test_help():
    result = CliRunner().invoke(gpps, ["--help"])
    assert result.exit_code == 0
    for cmd in ("set", "del", "lock", "get-table", "put-file", "get-file", "usage"):
        assert cmd in result.output


def test_keygen(tmp_path):
    out = tmp_path / "new.key"
    result = CliRunner().invoke(gpps, ["keygen", str(out)])
    assert result.exit_code == 0, result.output
    assert _json(result)["scope"].startswith("k_")
    assert len(bytes.fromhex(out.read_text())) == 32

    again = CliRunner().invoke(gpps, ["keygen", str(out)])
    assert again.exit_code != 0


def test_alice_walkthrough(cli, env):
    alice = _scope(cli, env["alice"])

    r = cli("set", alice, "5", "0102", "--key", env["alice"])
    assert r.exit_code == 0, r.output
    assert _json(r)["status"] == "created"

    r = cli("set", alice, "5", "030405", "--key", env["alice"])
    assert _json(r)["status"] == "updated"

    r = cli("lock", alice, "--key", env["alice"])
    assert r.exit_code == 0, r.output

    r = cli("set", alice, "5", "ff", "--key", env["alice"])
    assert r.exit_code == 1
    assert "FATAL: E_IMMUTABLE_SCOPE" in r.output

    r = cli("set", alice, "6", "ff", "--key", env["alice"])
    assert _json(r)["status"] == "created"

    r = cli("del", alice, "6", "--key", env["alice"])
    assert r.exit_code == 1
    assert "E_IMMUTABLE_SCOPE" in r.output

    r = cli("del", alice, "99", "--key", env["alice"])
    assert r.exit_code == 1
    assert "E_NOT_FOUND" in r.output

    r = cli("get-table", alice, "-L", "1", "-U", "10")
    assert _json(r)["rows"] == [
        {"id": "5", "data": "030405", "payer": alice},
        {"id": "6", "data": "ff", "payer": alice},
    ]


def test_other_key_is_unauthorized(cli, env):
    alice = _scope(cli, env["alice"])
    r = cli("set", alice, "1", "00", "--key", env["bob"])
    assert r.exit_code == 1
    assert "E_UNAUTHORIZED" in r.output
    assert not Path(env["store"]).exists()


def test_bad_arguments(cli, env):
    alice = _scope(cli, env["alice"])
    assert cli("set", alice, "-1", "00", "--key", env["alice"]).exit_code == 2
    assert cli("set", alice, str(2**64), "00", "--key", env["alice"]).exit_code == 2
    assert cli("set", alice, "1", "zz", "--key", env["alice"]).exit_code == 2


def test_sign_push_and_verify(cli, env):
    alice = _scope(cli, env["alice"])
    r = cli("sign", "set", alice, "7", "dead", "--key", env["alice"])
    assert r.exit_code == 0, r.output
    envelope = env["tmp"] / "action.json"
    envelope.write_text(r.output.strip().splitlines()[-1], encoding="utf-8")

    v = CliRunner().invoke(gpps_verify, ["action", str(envelope)])
    assert v.exit_code == 0, v.output
    assert _json(v)["status"] == "PASS"

    r = cli("push", str(envelope))
    assert _json(r)["status"] == "created"

    forged = env["tmp"] / "forged.json"
    r = cli("sign", "del", alice, "7", "--key", env["bob"])
    forged.write_text(r.output.strip().splitlines()[-1], encoding="utf-8")
    v = CliRunner().invoke(gpps_verify, ["action", str(forged)])
    assert v.exit_code == 1
    assert _json(v)["errors"][0]["code"] == "E_OWNER_MISMATCH"
    r = cli("push", str(forged))
    assert "E_UNAUTHORIZED" in r.output


def test_put_and_get_file(cli, env):
    alice = _scope(cli, env["alice"])
    src = env["tmp"] / "blob.bin"
    payload = bytes(range(256)) * 5
    src.write_bytes(payload)

    r = cli("put-file", alice, "100", str(src), "--chunk-size", "300", "--key", env["alice"])
    assert r.exit_code == 0, r.output
    assert _json(r) == {"owner": alice, "lower": "100", "upper": "104", "nodes": 5}

    out = env["tmp"] / "copy.bin"
    r = cli("get-file", alice, "100", "104", str(out))
    assert r.exit_code == 0, r.output
    assert out.read_bytes() == payload

    r = cli("get-file", alice, "99", "104", str(env["tmp"] / "short.bin"))
    assert r.exit_code == 1


def test_put_file_is_all_or_nothing(cli, env):
    alice = _scope(cli, env["alice"])
    cli("set", alice, "2", "00", "--key", env["alice"])
    cli("lock", alice, "--key", env["alice"])
    src = env["tmp"] / "blob.bin"
    src.write_bytes(b"abcdef")

    r = cli("put-file", alice, "1", str(src), "--chunk-size", "2", "--key", env["alice"])
    assert r.exit_code == 1
    rows = _json(cli("get-table", alice))["rows"]
    assert [row["id"] for row in rows] == ["0", "2"]


def test_usage(cli, env):
    alice = _scope(cli, env["alice"])
    cli("set", alice, "1", "0102", "--key", env["alice"])
    r = cli("usage")
    assert _json(r) == {alice: 112 + 8 + 1 + 2}


def test_store_from_environment(cli, env):
    alice = _scope(cli, env["alice"])
    result = CliRunner().invoke(
        gpps,
        ["set", alice, "1", "00", "--key", env["alice"]],
        env={"GPPS_STORE": env["store"]},
    )
    assert result.exit_code == 0, result.output
    assert Path(env["store"]).exists()


def test_module_entrypoint(env):
    repo = Path(__file__).resolve().parents[1]
    run_env = dict(os.environ, PYTHONPATH=str(repo / "src"))
    base = [sys.executable, "-m", "gpps_ledger.cli", "--store", env["store"]]

    r = subprocess.run(base + ["whoami", "--key", env["alice"]], cwd=repo, env=run_env, capture_output=True, text=True)
    assert r.returncode == 0, r.stderr + r.stdout
    alice = json.loads(r.stdout)["scope"]

    r = subprocess.run(base + ["lock", alice, "--key", env["alice"]], cwd=repo, env=run_env, capture_output=True, text=True)
    assert r.returncode == 0, r.stderr + r.stdout

    r = subprocess.run(base + ["lock", alice, "--key", env["alice"]], cwd=repo, env=run_env, capture_output=True, text=True)
    assert r.returncode != 0
    assert "E_IMMUTABLE_SCOPE" in r.stdout


def test_usage_reports_loaded_ledger(cli, env):
    assert _json(cli("usage")) == {}
    alice = _scope(cli, env["alice"])
    cli("set", alice, "1", "", "--key", env["alice"])
    cli("set", alice, "2", "00", "--key", env["alice"])
    cli("del", alice, "1", "--key", env["alice"])
    assert _json(cli("usage")) == {alice: 112 + 8 + 1 + 1}
