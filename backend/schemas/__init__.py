"""
Schemas package for the artifact.shelf API.

Core types are in schemas/user.py and schemas/artifact.py.
Request schemas for auth are defined in the router where they're used.
"""

from .user import (
    User,
    CurrentUser,
    Token,
    TokenData,
)

from .artifact import (
    ARTIFACT_TYPES,
    ArtifactCreate,
    ArtifactUpdate,
    ArtifactSchema,
    ToggleLikeResponse,
    MessageResponse,
)

__all__ = [
    'User',
    'CurrentUser',
    'Token',
    'TokenData',
    'ARTIFACT_TYPES',
    'ArtifactCreate',
    'ArtifactUpdate',
    'ArtifactSchema',
    'ToggleLikeResponse',
    'MessageResponse',
]
