"""
Admin credential checks.
Uses bcrypt when an ADMIN_PASSWORD_HASH is configured.
"""
import hmac
import logging

import bcrypt

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.
    Used for generating ADMIN_PASSWORD_HASH.
    """
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


def tokens_match(given: str, expected: str) -> bool:
    """Constant time comparison of two secrets."""
    return hmac.compare_digest(given.encode('utf-8'), expected.encode('utf-8'))


def check_admin_credentials(settings, username: str, password: str) -> bool:
    """
    Check submitted login credentials against the configured admin.

    The password is verified against ADMIN_PASSWORD_HASH when set,
    otherwise compared with ADMIN_PASS. An empty configured password never matches.
    """
    if not username or not password:
        return False
    if not tokens_match(username, settings.ADMIN_USER):
        return False
    if settings.ADMIN_PASSWORD_HASH:
        return verify_password(password, settings.ADMIN_PASSWORD_HASH)
    if not settings.ADMIN_PASS:
        logger.warning("Login attempted but neither ADMIN_PASSWORD_HASH nor ADMIN_PASS is configured")
        return False
    return tokens_match(password, settings.ADMIN_PASS)


if __name__ == "__main__":
    import getpass

    secret = getpass.getpass("Enter admin password: ")
    if secret and secret == getpass.getpass("Confirm password: "):
        print(f"ADMIN_PASSWORD_HASH={hash_password(secret)}")
    else:
        print("Passwords are empty or do not match")
