"""JWT bearer-token verification.

Tokens are issued by the identity provider that fronts this service; both
sides share JWT_SECRET (HS256). `sub` is the user id that every bet command
acts as. create_access_token exists for local tooling and tests.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.gb_common.errors import InvalidCredentialsError
from src.gb_common.id_generator import MAX_ID_LENGTH

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: str, expires_in: timedelta = _ACCESS_EXPIRE) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + expires_in,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: token invalid, expired, not an access token,
                                 or `sub` missing or wider than a user id column.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    sub = payload.get("sub")
    if payload.get("type") != "access" or not sub or len(sub) > MAX_ID_LENGTH:
        raise InvalidCredentialsError()
    return payload
