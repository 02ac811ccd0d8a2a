import jwt
from fastapi import Header, HTTPException
from typing import Any, Dict, Optional

from ecotrack.config import settings
from ecotrack.schemas.approval import Caller


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def get_current_user(authorization: Optional[str] = Header(default=None)) -> Caller:
    """Caller identity from the bearer token minted by the auth service"""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="No token provided")
    token = authorization.split(" ", 1)[1].strip()
    try:
        data = decode_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = data.get("userId") or data.get("sub")
    role = data.get("role")
    business_id = data.get("businessId")
    if not user_id or not role:
        raise HTTPException(status_code=401, detail="Token is missing user claims")
    if not business_id:
        raise HTTPException(status_code=401, detail="businessId missing from token - re-login to refresh your session")

    return Caller(user_id=str(user_id), role=str(role), business_id=str(business_id))
