"""
Authentication Routes

POST /auth/register - New employer account
POST /auth/login - Exchange email + password for a bearer token
GET /auth/me - Account behind the token
"""

from fastapi import APIRouter, HTTPException, Depends

from udyoga_setu.db.postgres import fetch_one
from udyoga_setu.core.auth import verify_password, create_access_token, create_user, get_current_user
from udyoga_setu.schemas.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, UserResponse, MessageResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Sign up as an employer, then log in and create the company profile.
    Admin accounts come from `udyoga-setu create-admin`.
    """
    create_user(request.email, request.password, role="employer", full_name=request.full_name)
    return MessageResponse(message="Registered successfully as employer. Please login.")


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """Send the returned token as `Authorization: Bearer <token>`."""
    account = fetch_one(
        "SELECT id, password_hash, role, is_active FROM users WHERE email = :email",
        {"email": request.email}
    )
    if not account or not verify_password(request.password, account["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not account["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")

    return TokenResponse(
        access_token=create_access_token(account["id"], account["role"]),
        user_id=account["id"],
        role=account["role"],
    )


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    account = fetch_one(
        "SELECT full_name, created_at FROM users WHERE id = :id",
        {"id": user["user_id"]}
    )
    return UserResponse(
        user_id=user["user_id"],
        email=user["email"],
        role=user["role"],
        full_name=account["full_name"],
        is_active=user["is_active"],
        company_id=user["company_id"],
        created_at=account["created_at"],
    )
