"""Owner authorization in front of the node engine.

An action reaches the engine only after the invoking identity has been
shown to own the target scope. Signed envelopes carry that proof:

    {"action": {"action": "set", "owner": "k_...", "id": "5", "data": "0102"},
     "signer": "<ed25519 public key hex>",
     "signature": "<signature hex over the canonical action JSON>"}
"""
from __future__ import annotations

import json
from pathlib import Path

from gpps_core.engine import NodeEngine
from gpps_core.errors import InvalidAction, Unauthorized
from gpps_core.ids import parse_node_id, scope_id
from gpps_core.logging import get_logger
from gpps_core.protocol import ACTION_DEL, ACTION_SET, ACTIONS

from .const import ERRORS
from .crypto import public_key, sign_ed25519, verify_ed25519

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

logger = get_logger(__name__)


def _load_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def _canonical_json_bytes(obj) -> bytes:
    return json.dumps(obj, **CANONICAL_JSON_KW).encode("utf-8")


def decode_data(text: str) -> bytes:
    """Node data travels as hex text."""
    if not isinstance(text, str):
        raise InvalidAction(f"data must be a hex string, got {type(text).__name__}")
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise InvalidAction(f"data is not hex: {e}") from e


def make_action(action: str, owner: str, node_id: int, data: bytes | None = None) -> dict:
    obj = {"action": action, "owner": owner, "id": str(node_id)}
    if action == ACTION_SET:
        obj["data"] = bytes(data or b"").hex()
    return obj


def parse_action(obj) -> tuple[str, str, int, bytes | None]:
    """Validate an action dict and return (action, owner, id, data)."""
    if not isinstance(obj, dict):
        raise InvalidAction("action must be an object")
    action = obj.get("action")
    if action not in ACTIONS:
        raise InvalidAction(f"unknown action {action!r}")
    owner = obj.get("owner")
    if not isinstance(owner, str) or not owner:
        raise InvalidAction("owner must be a non-empty string")
    try:
        node_id = parse_node_id(obj.get("id", ""))
    except ValueError as e:
        raise InvalidAction(str(e)) from e
    data = None
    if action == ACTION_SET:
        if "data" not in obj:
            raise InvalidAction("set requires data")
        data = decode_data(obj["data"])
    return action, owner, node_id, data


def sign_action(seed: bytes, action: dict) -> dict:
    return {
        "action": action,
        "signer": public_key(seed).hex(),
        "signature": sign_ed25519(seed, _canonical_json_bytes(action)).hex(),
    }


class OwnerAuthorizer:
    """Authorizes exactly one identity: the actor it was built for."""

    def __init__(self, actor: str):
        self.actor = actor

    def require_auth(self, owner: str) -> None:
        if self.actor != owner:
            raise Unauthorized(actor=self.actor, owner=owner)


def _signer_scope(envelope: dict) -> str:
    """Verify the envelope signature and return the signer's scope."""
    try:
        pub = bytes.fromhex(envelope["signer"])
        sig = bytes.fromhex(envelope["signature"])
    except (KeyError, TypeError, ValueError) as e:
        raise Unauthorized("signer or signature missing or not hex") from e
    if not verify_ed25519(pub, _canonical_json_bytes(envelope["action"]), sig):
        raise Unauthorized("signature does not verify")
    return scope_id(pub)


class Gateway:
    """Authorization boundary: nothing unauthorized touches the engine."""

    def __init__(self, engine: NodeEngine):
        self.engine = engine

    def set(self, authorizer, owner: str, node_id: int, data: bytes) -> str:
        authorizer.require_auth(owner)
        return self.engine.set(owner, node_id, data)

    def delete(self, authorizer, owner: str, node_id: int) -> str:
        authorizer.require_auth(owner)
        return self.engine.delete(owner, node_id)

    def push(self, envelope) -> str:
        """Apply a signed action envelope."""
        if not isinstance(envelope, dict) or "action" not in envelope:
            raise InvalidAction("envelope must carry an action")
        action, owner, node_id, data = parse_action(envelope["action"])
        authorizer = OwnerAuthorizer(_signer_scope(envelope))
        logger.debug("%s %s/%d by %s", action, owner, node_id, authorizer.actor)
        if action == ACTION_DEL:
            return self.delete(authorizer, owner, node_id)
        return self.set(authorizer, owner, node_id, data)


def verify_envelope(path: Path) -> dict:
    """Check a signed action file without applying it."""
    errors = []

    try:
        envelope = _load_json(path)
    except Exception as e:
        errors.append({"code":"E_ENVELOPE_JSON","message":ERRORS["E_ENVELOPE_JSON"],"detail":str(e)})
        return {"status":"FAIL","error_count":len(errors),"errors":errors}

    if not isinstance(envelope, dict) or not all(k in envelope for k in ("action", "signer", "signature")):
        errors.append({"code":"E_ENVELOPE_LAYOUT","message":ERRORS["E_ENVELOPE_LAYOUT"],"path":str(path)})
        return {"status":"FAIL","error_count":len(errors),"errors":errors}

    try:
        action, owner, node_id, _ = parse_action(envelope["action"])
    except InvalidAction as e:
        errors.append({"code":"E_ACTION_INVALID","message":ERRORS["E_ACTION_INVALID"],"detail":e.detail})
        return {"status":"FAIL","error_count":len(errors),"errors":errors}

    try:
        signer = _signer_scope(envelope)
    except Unauthorized as e:
        errors.append({"code":"E_SIG_INVALID","message":ERRORS["E_SIG_INVALID"],"detail":e.detail})
        return {"status":"FAIL","error_count":len(errors),"errors":errors}

    if signer != owner:
        errors.append({"code":"E_OWNER_MISMATCH","message":ERRORS["E_OWNER_MISMATCH"],"signer":signer,"owner":owner})
        return {"status":"FAIL","error_count":len(errors),"errors":errors}

    return {"status":"PASS","error_count":0,"errors":[],"action":action,"owner":owner,"id":str(node_id)}
