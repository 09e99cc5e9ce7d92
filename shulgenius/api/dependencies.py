# shulgenius/api/dependencies.py
from dataclasses import dataclass
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import uuid

from shulgenius.core.security import decode_token, JWTError
from shulgenius.services.cardknox_gateway import CardknoxGateway

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Claims carried by the bearer token"""
    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: str = "member"

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "owner")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Get current authenticated user"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )

    try:
        payload = decode_token(credentials.credentials)
        return CurrentUser(
            user_id=uuid.UUID(payload["sub"]),
            organization_id=uuid.UUID(payload["organization_id"]),
            role=payload.get("role", "member"),
        )
    except (JWTError, KeyError, ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Requires admin role or higher"
        )
    return current_user


def check_organization(current_user: CurrentUser, organization_id: uuid.UUID) -> None:
    """Tokens are scoped to one organization"""
    if current_user.organization_id != organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )


async def get_gateway() -> CardknoxGateway:
    """Overridden in tests with a mock transport"""
    return CardknoxGateway()
