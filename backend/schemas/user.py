"""
User schemas for artifact.shelf

Core user types. Request schemas (RegisterRequest, LoginRequest) are in the auth router.

Section order:
  1. User Types
  2. Auth Types
"""

from pydantic import BaseModel, Field
from typing import Optional


# ============================================================================
# USER TYPES
# ============================================================================


class User(BaseModel):
    """
    Public user representation.
    Returned by /auth/me and embedded in auth responses.
    """
    id: int = Field(description="Unique identifier")
    username: str = Field(description="Unique login name")
    email: str = Field(description="User's email address")


class CurrentUser(BaseModel):
    """Identity resolved from a bearer token and attached to a request."""
    user_id: int
    username: str


# ============================================================================
# AUTH TYPES
# ============================================================================


class Token(BaseModel):
    """Authentication response with JWT token."""
    token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: User = Field(description="The authenticated user")


class TokenData(BaseModel):
    """JWT token payload data."""
    user_id: Optional[int] = Field(None)
    username: Optional[str] = Field(None)
