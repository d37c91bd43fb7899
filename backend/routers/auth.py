from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import logging

from database import get_async_db
from exceptions import ValidationError
from schemas.user import Token, User as UserSchema, CurrentUser

from services import auth_service

logger = logging.getLogger(__name__)

# Re-export validate_token as get_current_user for convenient importing by other routers
# Usage: from routers.auth import get_current_user
get_current_user = auth_service.validate_token


# ============== Request Schemas ==============

class RegisterRequest(BaseModel):
    """Request schema for user registration."""
    username: Optional[str] = Field(default=None, description="Unique login name")
    email: Optional[EmailStr] = Field(default=None, description="User's email address")
    password: Optional[str] = Field(default=None, description="At least 6 characters")


class LoginRequest(BaseModel):
    """Request schema for login."""
    username: Optional[str] = Field(default=None, description="Login name")
    password: Optional[str] = Field(default=None, description="User's password")


router = APIRouter()


@router.post(
    "/register",
    response_model=Token,
    status_code=201,
    summary="Register a new user and automatically log them in"
)
async def register(user: RegisterRequest, db: AsyncSession = Depends(get_async_db)):
    """
    Register a new user and automatically log them in with:
    - **username**: unique login name
    - **email**: unique email address
    - **password**: at least 6 characters

    Returns a JWT token and the public user record, same as the login endpoint.
    """
    return await auth_service.register_and_login_user(
        db, user.username, user.email, user.password
    )


@router.post(
    "/login",
    response_model=Token,
    summary="Login to get JWT token",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "token_type": "bearer",
                        "user": {"id": 1, "username": "ada", "email": "ada@example.com"}
                    }
                }
            }
        },
        401: {
            "description": "Invalid credentials"
        }
    }
)
async def login(credentials: LoginRequest, db: AsyncSession = Depends(get_async_db)):
    """
    Login with username and password to get a JWT token.

    Unknown usernames and wrong passwords both return 401 "Invalid credentials".
    """
    if not credentials.username or not credentials.password:
        raise ValidationError("Username and password required")

    return await auth_service.login_user(db, credentials.username, credentials.password)


@router.get(
    "/me",
    response_model=UserSchema,
    summary="Get current user"
)
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    """
    Return the user behind the bearer token.

    404 if the account no longer exists even though the token is still valid.
    """
    return await auth_service.get_current_user_profile(db, current_user)
