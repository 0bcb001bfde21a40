from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer, APIKeyHeader
from .jwt_handler import verify_access_token
from .api_key import verify_api_key

# Bearer <token>; tokens come from the external auth provider
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)


async def get_current_user(request: Request, token: str | None = Depends(oauth2_scheme)) -> str:
    """Validate the JWT and return the caller's user id (the ``sub`` claim)."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    payload = verify_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # rate limiting and logs read it from here
    request.state.user_id = str(user_id)
    return str(user_id)


async def verify_internal_api_key(api_key: str | None = Depends(api_key_header)) -> bool:
    """Dependency to validate service-to-service requests."""
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True
