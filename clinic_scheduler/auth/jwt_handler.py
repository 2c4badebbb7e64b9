from datetime import datetime, timedelta, timezone

import jwt

from clinic_scheduler.core import config
from clinic_scheduler.models.enums import UserRole

REQUIRED_CLAIMS = ["sub", "role", "exp", "iat"]


def create_access_token(
    subject: str,
    role: UserRole = UserRole.PROVIDER,
    expires_minutes: int | None = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {
        "sub": subject,
        "role": role.value,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode a bearer token; raises ``jwt.PyJWTError`` when it is invalid or expired."""
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS},
    )
