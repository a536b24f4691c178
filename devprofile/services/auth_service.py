# FILE: devprofile/services/auth_service.py
from datetime import datetime, timezone, timedelta

import bcrypt
import jwt

from devprofile.core.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRATION_HOURS
from devprofile.core.exceptions import ValidationError


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def create_token(user_id: str, email: str) -> str:
    """Session token for the integration routes; carries the owning user id."""
    payload = {
        "user_id": user_id,
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRATION_HOURS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Return the user id of a session token.

    Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError for bad tokens
    and ValidationError when the payload carries no user id.
    """
    payload = jwt.decode(token.strip(), JWT_SECRET, algorithms=[JWT_ALGORITHM])
    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise ValidationError("Token carries no user id")
    return user_id
