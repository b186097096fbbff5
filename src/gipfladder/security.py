# src/gipfladder/security.py

"""One-way password verifiers backed by bcrypt."""

import base64
import hashlib
import os

import bcrypt


def _bcrypt_rounds() -> int:
    return int(os.getenv("BCRYPT_ROUNDS", "12"))


def _prehash(password: str) -> bytes:
    # bcrypt only reads 72 bytes and rejects NUL bytes; a base64 SHA-256
    # digest is 44 printable bytes for any input.
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(digest)


def hash_password(password: str) -> str:
    """Return an opaque verifier for ``password``."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    hashed = bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=_bcrypt_rounds()))
    return hashed.decode("utf-8")


def verify_password(password: str, verifier: str) -> bool:
    """Check ``password`` against a verifier produced by :func:`hash_password`.

    Never raises for a wrong password or a malformed verifier.
    """
    if not isinstance(password, str) or not isinstance(verifier, str):
        return False
    try:
        return bcrypt.checkpw(_prehash(password), verifier.encode("utf-8"))
    except ValueError:
        return False
