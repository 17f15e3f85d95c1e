"""Credential verification for termsh logins.

The authentication gate only needs something with a ``verify`` method; the
two implementations here cover a fixed in-memory pair and a salted
PBKDF2-SHA256 hash suitable for keeping in an environment file.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Protocol


HASH_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 260_000
SALT_BYTES = 16


class CredentialVerifier(Protocol):
    """Anything that can check a username/password pair."""

    def verify(self, username: str, password: str) -> bool:
        ...


def _equal(a: str, b: str) -> bool:
    # Constant-time comparison to prevent timing attacks
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def hash_password(
    password: str,
    salt: str | None = None,
    iterations: int = DEFAULT_ITERATIONS
) -> str:
    """Hash a password for storage.

    Args:
        password: Plain-text password
        salt: Hex salt (random if not given)
        iterations: PBKDF2 iteration count

    Returns:
        Encoded hash: ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``
    """
    if salt is None:
        salt = secrets.token_hex(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations
    ).hex()
    return f"{HASH_SCHEME}${iterations}${salt}${digest}"


def parse_password_hash(encoded: str) -> tuple[int, str, str]:
    """Split an encoded hash into (iterations, salt, digest).

    Raises:
        ValueError: If the string is not a valid encoded hash
    """
    parts = encoded.split("$")
    if len(parts) != 4 or parts[0] != HASH_SCHEME:
        raise ValueError(f"Unsupported password hash format (expected {HASH_SCHEME}$...)")
    _, iterations, salt, digest = parts
    if not iterations.isdigit() or int(iterations) < 1:
        raise ValueError(f"Invalid iteration count: {iterations!r}")
    if not salt or not digest:
        raise ValueError("Password hash is missing salt or digest")
    return int(iterations), salt, digest


def verify_password(password: str, encoded: str) -> bool:
    """Check a plain-text password against an encoded hash."""
    iterations, salt, _ = parse_password_hash(encoded)
    return _equal(hash_password(password, salt, iterations), encoded)


@dataclass(frozen=True)
class StaticCredentialVerifier:
    """A single fixed username/password pair."""
    username: str
    password: str

    def verify(self, username: str, password: str) -> bool:
        # Evaluate both so timing does not reveal which one was wrong
        user_ok = _equal(username, self.username)
        password_ok = _equal(password, self.password)
        return user_ok and password_ok


@dataclass(frozen=True)
class HashedCredentialVerifier:
    """A single username with a salted password hash."""
    username: str
    password_hash: str

    def __post_init__(self):
        parse_password_hash(self.password_hash)

    def verify(self, username: str, password: str) -> bool:
        user_ok = _equal(username, self.username)
        password_ok = verify_password(password, self.password_hash)
        return user_ok and password_ok
