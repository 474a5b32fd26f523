from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from ayasync.core.security import decode_access_token
from ayasync.models.user import ROLE_ADMIN
from ayasync.realtime.broadcaster import Broadcaster

# Bearer scheme - extracts token from "Authorization: Bearer <token>"
# auto_error=False so a missing header produces our own 401 message
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Authenticated principal, built from the verified token claims"""
    id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def authenticate_token(token: str | None) -> CurrentUser | None:
    """Verify a raw token and return the principal it carries, or None"""
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None or not payload.get("sub"):
        return None
    return CurrentUser(
        id=str(payload["sub"]),
        email=payload.get("email") or "",
        role=payload.get("role") or "user",
    )


async def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Get current authenticated user from the bearer token.

    Rejects with 401 when the header is absent, malformed or the token
    fails signature/expiry verification.
    """
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = authenticate_token(creds.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Same as get_current_user, but only lets admins through"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_broadcaster(request: Request) -> Broadcaster:
    """The broadcaster constructed for this app instance"""
    return request.app.state.broadcaster
