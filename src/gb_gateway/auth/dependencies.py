"""FastAPI dependency: get_current_user_id.

Usage in any protected router:
    from src.gb_gateway.auth.dependencies import get_current_user_id

    @router.post("/bets")
    async def create(user_id: Annotated[str, Depends(get_current_user_id)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.gb_common.errors import InvalidCredentialsError
from src.gb_gateway.auth.jwt_handler import decode_access_token

# tokenUrl points at the identity provider (shown by Swagger UI's "Authorize")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Extract and validate the JWT Bearer token, return its subject.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return payload["sub"]
