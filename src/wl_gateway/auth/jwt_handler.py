"""JWT verification for tokens issued by the identity service.

Tokens are HS256-signed with a secret shared between the identity service and
this one. This service never issues tokens; it only verifies them and reads
the user id claim ("uid", or the standard "sub" as a fallback).
"""

from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.wl_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        InvalidCredentialsError: signature invalid, token expired or malformed.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None


def user_id_from_claims(payload: dict[str, Any]) -> str | None:
    user_id = payload.get("uid", payload.get("sub"))
    if user_id is None or user_id == "":
        return None
    return str(user_id)
