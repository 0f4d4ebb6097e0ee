from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mathduel.core.jwt import get_identity_from_token
from mathduel.schemas.identity import Identity

auth_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    auth: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
) -> Identity:
    if auth is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity = get_identity_from_token(auth.credentials)

    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return identity
