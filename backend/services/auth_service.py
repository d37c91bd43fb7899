"""
Auth Service - Authentication and token management.

This service owns:
- JWT token creation and validation
- Login/register flows that hand back a session token
- Resolving the bearer token of a request into a CurrentUser

User storage and password hashing are handled by user_service.
"""

from datetime import datetime, timedelta
from typing import Optional, TypedDict
from jose import JWTError, ExpiredSignatureError, jwt
from fastapi import Security, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from models import User
from schemas.user import Token, TokenData, CurrentUser, User as UserSchema
from services.user_service import UserService
from exceptions import AuthenticationError, AuthorizationError, UserNotFoundError
from config.settings import settings
import logging
import time

SECRET_KEY = settings.JWT_SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES
# Refresh token when this percentage of lifetime has passed (e.g., 0.8 = 80%)
TOKEN_REFRESH_THRESHOLD = 0.8
logger = logging.getLogger(__name__)

# auto_error=False so a missing header maps to 401 and a bad token to 403
security = HTTPBearer(auto_error=False)


class TokenPayload(TypedDict, total=False):
    """Strongly-typed JWT token payload."""
    sub: str          # Subject (username)
    user_id: int      # User ID
    username: str     # Display username
    iat: int          # Issued-at timestamp (added automatically)
    exp: datetime     # Expiration (added automatically)


def create_access_token(data: TokenPayload, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Token payload data
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode: dict = dict(data)
    now = datetime.utcnow()

    # Use time.time() for consistent UTC timestamp (datetime.utcnow().timestamp() has timezone issues)
    if "iat" not in to_encode:
        to_encode["iat"] = int(time.time())

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    logger.info(f"Created access token for user_id={data.get('user_id')}")
    return encoded_jwt


def _token_data_for(user_id: int, username: str) -> TokenPayload:
    return {
        "sub": username,
        "user_id": user_id,
        "username": username,
    }


def _create_token_for_user(user: User) -> Token:
    """
    Create a Token response for an authenticated user.

    Args:
        user: Authenticated user model

    Returns:
        Token schema with the JWT and public user info
    """
    access_token = create_access_token(data=_token_data_for(user.user_id, user.username))

    return Token(
        token=access_token,
        token_type="bearer",
        user=UserSchema(id=user.user_id, username=user.username, email=user.email),
    )


async def login_user(db: AsyncSession, username: str, password: str) -> Token:
    """
    Authenticate user and return JWT token.

    Unknown usernames and wrong passwords produce the same error.

    Raises:
        AuthenticationError: If credentials are invalid
    """
    logger.info(f"Login attempt for: {username}")

    user_service = UserService(db)
    user = await user_service.verify_credentials(username, password)

    if not user:
        logger.warning(f"Failed login attempt for: {username}")
        raise AuthenticationError("Invalid credentials")

    logger.info(f"Successful login for: {username}")
    return _create_token_for_user(user)


async def register_and_login_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
) -> Token:
    """
    Register a new user and automatically log them in.

    Raises:
        ValidationError: If a field is missing or the password is too short
        ConflictError: If username or email already exists
    """
    logger.info(f"Registering new user: {username}")

    user_service = UserService(db)
    user = await user_service.create_user(
        username=username,
        email=email,
        password=password,
    )

    logger.info(f"Successfully registered user: {username}")
    return _create_token_for_user(user)


def _should_refresh(payload: dict) -> bool:
    """True once TOKEN_REFRESH_THRESHOLD of the token's lifetime has elapsed."""
    exp_timestamp = payload.get('exp')
    iat_timestamp = payload.get('iat')
    if not exp_timestamp:
        return False

    current_time = int(time.time())
    if iat_timestamp:
        total_lifetime = exp_timestamp - iat_timestamp
        time_elapsed = current_time - iat_timestamp
        lifetime_used = time_elapsed / total_lifetime if total_lifetime > 0 else 0
        return lifetime_used >= TOKEN_REFRESH_THRESHOLD

    # No iat claim - refresh if less than 20% of default lifetime remains
    threshold_seconds = ACCESS_TOKEN_EXPIRE_MINUTES * 60 * (1 - TOKEN_REFRESH_THRESHOLD)
    return exp_timestamp - current_time < threshold_seconds


async def validate_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> CurrentUser:
    """
    Validate the bearer token and return the identity it carries.

    This is used as a dependency in routers: Depends(auth_service.validate_token)

    The token is trusted on its signature alone; whether the user still exists
    is checked by the operations that need it (see get_current_user_profile).

    If the token is valid but past the refresh threshold (80% of lifetime),
    a new token is generated and stored in request.state.new_token for
    the middleware to return in the X-New-Token response header.

    Raises:
        AuthenticationError: No bearer token on the request (401)
        AuthorizationError: Token malformed, tampered with or expired (403)
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")

    token = credentials.credentials
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Token expired")
        raise AuthorizationError("Invalid or expired token")
    except JWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise AuthorizationError("Invalid or expired token")

    token_data = TokenData(
        user_id=payload.get("user_id"),
        username=payload.get("username"),
    )
    if token_data.user_id is None or token_data.username is None:
        logger.error("Token missing user claims")
        raise AuthorizationError("Invalid or expired token")

    if _should_refresh(payload):
        request.state.new_token = create_access_token(
            data=_token_data_for(token_data.user_id, token_data.username)
        )
        logger.debug(f"Generated refresh token for user_id={token_data.user_id}")

    return CurrentUser(user_id=token_data.user_id, username=token_data.username)


async def get_current_user_profile(db: AsyncSession, identity: CurrentUser) -> UserSchema:
    """
    Load the stored user behind an identity.

    Raises:
        UserNotFoundError: The account no longer exists
    """
    user = await UserService(db).get_user_by_id(identity.user_id)
    if user is None:
        logger.warning(f"Token user not found: user_id={identity.user_id}")
        raise UserNotFoundError()
    return UserSchema(id=user.user_id, username=user.username, email=user.email)
