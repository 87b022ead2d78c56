"""Security utilities for password hashing.

New passwords set through the reset flow are hashed with Argon2 via passlib,
matching the hashes written by the account service.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using Argon2.

    Args:
        password: Plain text password to hash

    Returns:
        str: Encoded Argon2 hash
    """
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Args:
        password: Plain text password to verify
        hashed_password: Encoded hash to verify against

    Returns:
        bool: True if password matches hash
    """
    return pwd_context.verify(password, hashed_password)
