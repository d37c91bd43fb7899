"""
User Service - Credential store.

This service owns:
- User creation with uniqueness checks on username and email
- Password hashing and credential verification
- User lookups

Tokens and sessions are handled by auth_service.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from typing import Optional
from passlib.context import CryptContext
import logging

from models import User as UserModel
from exceptions import ConflictError, ValidationError
from config.settings import settings

logger = logging.getLogger(__name__)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserService:
    """Service for user storage and credential checks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: int) -> Optional[UserModel]:
        """Get user by ID. Returns None if not found."""
        result = await self.db.execute(
            select(UserModel).where(UserModel.user_id == user_id)
        )
        return result.scalars().first()

    async def get_user_by_username(self, username: str) -> Optional[UserModel]:
        """Get user by username. Returns None if not found."""
        result = await self.db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalars().first()

    async def create_user(self, username: str, email: str, password: str) -> UserModel:
        """
        Create a new user with a bcrypt-hashed password.

        Raises:
            ValidationError: a field is missing or the password is too short
            ConflictError: username or email is already taken
        """
        username = (username or "").strip()
        email = (email or "").strip()

        if not username or not email or not password:
            raise ValidationError("All fields are required")

        if len(password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
            )

        existing = await self.db.execute(
            select(UserModel.user_id).where(
                or_(UserModel.username == username, UserModel.email == email)
            )
        )
        if existing.first() is not None:
            logger.info(f"Registration rejected, username or email taken: {username}")
            raise ConflictError("Username or email already exists")

        user = UserModel(
            username=username,
            email=email,
            password=pwd_context.hash(password),
        )

        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            await self.db.rollback()
            raise ConflictError("Username or email already exists")
        await self.db.refresh(user)

        logger.info(f"Created user: {username} (id={user.user_id})")
        return user

    async def verify_credentials(self, username: str, password: str) -> Optional[UserModel]:
        """Return the user if username and password match, else None."""
        user = await self.get_user_by_username((username or "").strip())
        if not user:
            return None

        if not pwd_context.verify(password, user.password):
            return None

        return user

