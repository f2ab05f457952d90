"""One-way password hashing for account credentials."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from exchange_sim.core.constants import PASSWORD_HASH_ITERATIONS, PASSWORD_SALT_BYTES


@dataclass(frozen=True, slots=True)
class PasswordHash:
    """Salted PBKDF2-SHA256 digest, hex encoded."""

    digest: str
    salt: str
    iterations: int = PASSWORD_HASH_ITERATIONS


def hash_password(
    password: str,
    *,
    salt: str | None = None,
    iterations: int = PASSWORD_HASH_ITERATIONS,
) -> PasswordHash:
    """Derive a salted hash for ``password``; a fresh salt is drawn when none is given."""
    salt_hex = salt if salt is not None else secrets.token_hex(PASSWORD_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt_hex),
        iterations,
    )
    return PasswordHash(digest=digest.hex(), salt=salt_hex, iterations=iterations)


def verify_password(password: str, credential: PasswordHash) -> bool:
    """Check ``password`` against a stored credential in constant time."""
    candidate = hash_password(password, salt=credential.salt, iterations=credential.iterations)
    return hmac.compare_digest(candidate.digest, credential.digest)
