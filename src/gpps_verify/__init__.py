"""GPPS Verify - owner authorization through signed actions."""
from .logic import Gateway, OwnerAuthorizer, make_action, sign_action, verify_envelope

__all__ = ["Gateway", "OwnerAuthorizer", "make_action", "sign_action", "verify_envelope"]
