"""FastAPI dependency: get_current_user_id.

Usage in any protected router:
    from src.wl_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: str = Depends(get_current_user_id)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.wl_common.errors import InvalidCredentialsError
from src.wl_gateway.auth.jwt_handler import decode_token, user_id_from_claims

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Validate the Bearer token and return the user id it was issued for.

    Raises HTTP 401 if the token is missing, invalid, expired or carries no user id.
    """
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = user_id_from_claims(payload)
    if user_id is None:
        raise _CREDENTIALS_EXCEPTION
    return user_id
