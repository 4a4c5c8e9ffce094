import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
import structlog
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALG, JWT_SECRET
from database import collection, to_object_id
from errors import AdminRequired, AuthenticationRequired

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

GUEST_PREFIX = "guest:"


# ----------------------------------------------------------------------------
# Passwords & tokens
# ----------------------------------------------------------------------------

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(subject: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = subject.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> Optional[str]:
    """Return the user id carried by ``token``, or None if it is unusable."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except jwt.ExpiredSignatureError:
        logger.info("expired token presented")
        return None
    except jwt.InvalidTokenError:
        return None
    return payload.get("sub")


def load_session_user(token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    uid = to_object_id(decode_access_token(token))
    if uid is None:
        return None
    user = collection("user").find_one({"_id": uid})
    if not user or user.get("status") == "banned":
        return None
    return user


def guest_identity() -> str:
    return GUEST_PREFIX + secrets.token_hex(12)


# ----------------------------------------------------------------------------
# Service-level checks
# ----------------------------------------------------------------------------

def require_user(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not user:
        raise AuthenticationRequired()
    return user


def require_admin(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    require_user(user)
    if user.get("role") != "ADMIN":
        raise AdminRequired()
    return user


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    return bool(user) and user.get("role") == "ADMIN"


# ----------------------------------------------------------------------------
# FastAPI dependencies
# ----------------------------------------------------------------------------

async def get_optional_user(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[Dict[str, Any]]:
    return load_session_user(token)


async def get_current_user(user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> Dict[str, Any]:
    if not user:
        raise HTTPException(status_code=401, detail="Invalid authentication")
    return user


async def get_current_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "ADMIN":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
