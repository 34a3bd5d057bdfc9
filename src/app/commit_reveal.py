from __future__ import annotations

import hashlib
import secrets
from typing import Final

from protocol import Move

SCHEME_ID: Final[str] = "rps-stake-v1"

# Unset commitment slot.
ZERO_HASH: Final[str] = "0" * 64


def generate_secret(num_bytes: int = 32) -> bytes:
    return secrets.token_bytes(num_bytes)


def canonical_string(*, move: Move | int, secret: bytes) -> str:
    return f"{SCHEME_ID}|move={int(move)}|secret={secret.hex()}"


def compute_commitment(*, move: Move | int, secret: bytes) -> str:
    payload = canonical_string(move=move, secret=secret).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def verify_commitment(*, expected_commitment: str, move: Move | int, secret: bytes) -> bool:
    computed = compute_commitment(move=move, secret=secret)
    return secrets.compare_digest(expected_commitment, computed)


def is_unset(commitment: str) -> bool:
    return not commitment or commitment == ZERO_HASH
