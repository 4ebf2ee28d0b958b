from nacl.signing import SigningKey, VerifyKey
from nacl.exceptions import BadSignatureError
from nacl.utils import random

SEED_LEN = 32


def new_seed() -> bytes:
    return random(SEED_LEN)


def public_key(seed: bytes) -> bytes:
    return bytes(SigningKey(seed).verify_key)


def sign_ed25519(seed: bytes, message: bytes) -> bytes:
    return SigningKey(seed).sign(message).signature


def verify_ed25519(public_key_bytes: bytes, message: bytes, signature: bytes) -> bool:
    try:
        vk = VerifyKey(public_key_bytes)
        vk.verify(message, signature)
        return True
    except (BadSignatureError, ValueError, TypeError):
        return False
