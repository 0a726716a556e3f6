"""
Credential digests

Secrets are hashed with scrypt and a random per-account salt. The ledger
stores the resulting digest string and never interprets it.
"""

import hashlib
import hmac
import secrets
from typing import Optional

SCHEME = "scrypt"


def _generate_salt() -> str:
    """Generate random salt for credential hashing"""
    return secrets.token_hex(16)


def _scrypt(secret: str, salt: str) -> str:
    return hashlib.scrypt(
        secret.encode(),
        salt=salt.encode(),
        n=16384, r=8, p=1
    ).hex()


def hash_credential(secret: str, salt: Optional[str] = None) -> str:
    """Return a ``scrypt$<salt>$<digest>`` string for ``secret``"""
    salt = salt or _generate_salt()
    return f"{SCHEME}${salt}${_scrypt(secret, salt)}"


def verify_credential(secret: str, digest: str) -> bool:
    """Check ``secret`` against a digest produced by hash_credential"""
    try:
        scheme, salt, expected = digest.split("$", 2)
    except ValueError:
        return False
    if scheme != SCHEME:
        return False
    return hmac.compare_digest(_scrypt(secret, salt), expected)
