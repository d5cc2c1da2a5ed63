import re

import bcrypt

# At least 8 characters with one lowercase letter, one uppercase letter and one digit
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")
PASSWORD_RULE = (
    "Password must be at least 8 characters long and contain at least one "
    "uppercase letter, one lowercase letter, and one number"
)

_BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check a password against a stored bcrypt hash."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash (e.g. restored from a foreign backup)
        return False


def is_strong_password(password: str) -> bool:
    return bool(PASSWORD_PATTERN.match(password))
