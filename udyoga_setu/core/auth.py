"""
Employer and admin authentication.

Accounts live in `users`; an employer's company is the `companies` row whose
user_id points back at them. Tokens are HS256 JWTs whose `sub` is the user id.

HTTP routes get the caller through the bearer dependencies below. WebSocket
routes have no Authorization header and pass `?token=` to user_from_token().
"""

import uuid
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from udyoga_setu.core.config import get_settings
from udyoga_setu.db.postgres import get_db_session, fetch_one
from udyoga_setu.utils.timeutils import utcnow, now_iso
from sqlalchemy import text

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer()

USER_SELECT = """
    SELECT u.id AS user_id, u.email, u.role, u.is_active, c.id AS company_id
    FROM users u
    LEFT JOIN companies c ON c.user_id = u.id
    WHERE u.id = :id
"""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signed token for a user; expiry defaults to JWT_EXPIRE_MINUTES."""
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=settings.jwt_expire_minutes)
    claims = {"sub": user_id, "role": role, "exp": utcnow() + lifetime}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Claims of a valid token; None when the signature or expiry check fails."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def _load_user(token: Optional[str]) -> Optional[dict]:
    claims = decode_token(token) if token else None
    if not claims or not claims.get("sub"):
        return None
    user = fetch_one(USER_SELECT, {"id": claims["sub"]})
    if user:
        user["is_active"] = bool(user["is_active"])
    return user


def user_from_token(token: Optional[str]) -> Optional[dict]:
    """Active user for a raw token, or None."""
    user = _load_user(token)
    return user if user and user["is_active"] else None


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    Dependency: the caller behind the bearer token.

    Returns a dict with user_id, email, role, is_active and company_id
    (None until an employer creates a profile).
    """
    user = _load_user(credentials.credentials)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")
    return user


async def get_current_employer(user: dict = Depends(get_current_user)) -> dict:
    """Dependency: employer with a company profile."""
    if user["role"] != "employer":
        raise HTTPException(status_code=403, detail="Employers only")
    if not user["company_id"]:
        raise HTTPException(status_code=404, detail="Company profile not found. Create profile first.")
    return user


async def get_current_admin(user: dict = Depends(get_current_user)) -> dict:
    if user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Admins only")
    return user


def create_user(email: str, password: str, role: str = "employer", full_name: Optional[str] = None) -> str:
    """Insert an account and return its id. 400 when the email is taken."""
    if fetch_one("SELECT id FROM users WHERE email = :email", {"email": email}):
        raise HTTPException(status_code=400, detail="Email already registered")

    user_id = str(uuid.uuid4())
    with get_db_session() as db:
        db.execute(
            text("""
                INSERT INTO users (id, email, password_hash, role, full_name, is_active, created_at)
                VALUES (:id, :email, :password_hash, :role, :full_name, :is_active, :created_at)
            """),
            {
                "id": user_id,
                "email": email,
                "password_hash": hash_password(password),
                "role": role,
                "full_name": full_name,
                "is_active": True,
                "created_at": now_iso(),
            }
        )
    return user_id
