"""
workisready/core/security.py

Purpose: Credential helpers

- PBKDF2 password hashing and verification
- Opaque token generation for login sessions and email verification
"""

import hashlib
import hmac
import secrets

from workisready.core.config import settings

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 260000


def hash_password(password: str) -> str:
    """
    Hashes a password with a random salt.

    Returns:
        String of the form ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``
    """
    salt = secrets.token_hex(16)
    digest = _derive(password, salt, _ITERATIONS)
    return f"{_ALGORITHM}${_ITERATIONS}${salt}${digest}"


def verify_password(password: str, encoded: str) -> bool:
    """
    Checks a password against a stored hash. Malformed hashes never match.
    """
    if not password or not encoded:
        return False
    try:
        algorithm, iterations, salt, digest = encoded.split("$", 3)
        rounds = int(iterations)
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False
    return hmac.compare_digest(_derive(password, salt, rounds), digest)


def generate_token(nbytes: int = 32) -> str:
    """Returns a URL-safe random token."""
    return secrets.token_urlsafe(nbytes)


def _derive(password: str, salt: str, iterations: int) -> str:
    material = f"{password}{settings.SECRET_KEY}".encode("utf-8")
    return hashlib.pbkdf2_hmac("sha256", material, salt.encode("utf-8"), iterations).hex()
