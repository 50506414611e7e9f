"""
Authentication and authorization dependencies
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import get_config
from ..errors import (
    InsufficientStockError, NotFoundError, OverSellError, PersistenceError,
    UnauthorizedError, ValidationError
)
from ..members import Member
from ..troop import TroopSystem


security = HTTPBearer(auto_error=False)

_troop_system: Optional[TroopSystem] = None


def get_troop_system() -> TroopSystem:
    """Process-wide TroopSystem, built and seeded on first use"""
    global _troop_system
    if _troop_system is None:
        _troop_system = TroopSystem()
        _troop_system.initialize()
    return _troop_system


def issue_token(member: Member) -> str:
    config = get_config()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": member.id,
        "admin": member.is_admin,
        "iat": now,
        "exp": now + timedelta(hours=config.jwt_expiry_hours),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def get_current_member(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    system: TroopSystem = Depends(get_troop_system)
) -> Member:
    """Dependency that validates the bearer token and returns the member it names"""
    config = get_config()
    if not config.auth_enabled:
        admin = system.directory.get_by_username(config.admin_username)
        if admin is None:
            raise HTTPException(status_code=503, detail="Administrator account not initialized")
        return admin

    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(credentials.credentials, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    member_id = payload.get("sub")
    member = system.directory.get_member(member_id) if member_id else None
    if member is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return member


def get_admin_member(member: Member = Depends(get_current_member)) -> Member:
    if not member.is_admin:
        raise HTTPException(status_code=403, detail="This operation requires the troop administrator")
    return member


def require_self_or_admin(member: Member, member_id: str) -> None:
    """Scouts may only read their own records"""
    if not member.is_admin and member.id != member_id:
        raise HTTPException(status_code=403, detail="Members may only view their own records")


def to_http_error(error: Exception) -> HTTPException:
    """Map a domain error to the HTTP status the API reports it with"""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, UnauthorizedError):
        return HTTPException(status_code=403, detail=str(error))
    if isinstance(error, (OverSellError, InsufficientStockError)):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, PersistenceError):
        return HTTPException(status_code=503, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))
