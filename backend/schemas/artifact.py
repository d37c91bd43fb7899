"""
Artifact and like Pydantic schemas for request/response validation.

Request bodies are deliberately loose (everything optional) so that the
service layer can report missing fields with a single readable error message.
Responses use camelCase for the derived/boolean fields the UI reads
(isPublic, likeCount, userLiked) and snake_case for the rest.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional, List, Union
from datetime import datetime

from models import ArtifactType

ARTIFACT_TYPES: List[str] = [t.value for t in ArtifactType]


class ArtifactCreate(BaseModel):
    """Request schema for creating an artifact."""
    title: Optional[str] = Field(default=None, description="Artifact title")
    type: Optional[str] = Field(default=None, description=f"One of: {', '.join(ARTIFACT_TYPES)}")
    description: Optional[str] = Field(default=None, description="Free-form description")
    code: Optional[str] = Field(default=None, description="Source body of the artifact")
    tags: Union[List[str], str, None] = Field(
        default=None,
        description="List of tags or a comma-separated string"
    )
    is_public: Optional[bool] = Field(
        default=False,
        validation_alias=AliasChoices("isPublic", "is_public"),
        description="Whether other users can see the artifact; null means private"
    )


class ArtifactUpdate(BaseModel):
    """Request schema for updating an artifact. Omitted fields are left unchanged."""
    title: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    code: Optional[str] = None
    tags: Union[List[str], str, None] = None
    is_public: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("isPublic", "is_public"),
    )


class ArtifactSchema(BaseModel):
    """Response schema for an artifact annotated for the requesting user."""
    id: int
    user_id: int
    username: str = Field(description="Owner's username")
    title: str
    type: str
    description: Optional[str] = None
    code: str
    tags: List[str] = Field(default_factory=list)
    is_public: bool = Field(
        validation_alias=AliasChoices("isPublic", "is_public"),
        serialization_alias="isPublic",
    )
    like_count: int = Field(
        default=0,
        validation_alias=AliasChoices("likeCount", "like_count"),
        serialization_alias="likeCount",
    )
    user_liked: bool = Field(
        default=False,
        validation_alias=AliasChoices("userLiked", "user_liked"),
        serialization_alias="userLiked",
    )
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ToggleLikeResponse(BaseModel):
    """Response from toggling a like"""
    liked: bool
    like_count: int = Field(
        validation_alias=AliasChoices("likeCount", "like_count"),
        serialization_alias="likeCount",
    )


class MessageResponse(BaseModel):
    message: str
