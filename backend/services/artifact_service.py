"""
Artifact Service

CRUD for user-owned code artifacts with the two access rules:
- visibility: a viewer can read an artifact they own or one that is public
- ownership: only the owner can update or delete

Every read comes back annotated with the owner's username, the like count
and whether the viewer has liked it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy import select, func, exists, or_, and_, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Depends

from models import Artifact, ArtifactLike, ArtifactType, User
from schemas.artifact import ArtifactCreate, ArtifactUpdate, ARTIFACT_TYPES
from exceptions import ArtifactNotFoundError, ServerError, ValidationError
from database import get_async_db

logger = logging.getLogger(__name__)

NOT_OWNED_MESSAGE = "Artifact not found or unauthorized"
# Largest id a signed 64-bit INTEGER column can hold
MAX_ARTIFACT_ID = 2**63 - 1


@dataclass
class ArtifactInfo:
    """An artifact plus the fields derived for one viewer."""
    artifact: Artifact
    username: str
    like_count: int = 0
    user_liked: bool = False


def normalize_tags(tags: Union[str, Iterable[str], None]) -> List[str]:
    """
    Turn user input into a clean tag list.

    Accepts a comma-separated string ("a, b ,c") or a list. Entries are
    trimmed and empty ones dropped; order and duplicates are kept.
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [str(tag).strip() for tag in tags if tag is not None and str(tag).strip()]


def validate_artifact_type(artifact_type: str) -> str:
    """Return the canonical type value or raise ValidationError."""
    value = artifact_type.strip().lower()
    try:
        return ArtifactType(value).value
    except ValueError:
        raise ValidationError(
            f"Invalid artifact type '{artifact_type}'. Must be one of: {', '.join(ARTIFACT_TYPES)}"
        )


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ArtifactService:
    """Service for artifact CRUD operations scoped to a viewer."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _annotated_select(self, viewer_id: int):
        """SELECT artifact, owner username, like count, viewer-liked flag."""
        like_count = (
            select(func.count(ArtifactLike.id))
            .where(ArtifactLike.artifact_id == Artifact.id)
            .correlate(Artifact)
            .scalar_subquery()
        )
        user_liked = (
            exists()
            .where(
                and_(
                    ArtifactLike.artifact_id == Artifact.id,
                    ArtifactLike.user_id == viewer_id
                )
            )
            .correlate(Artifact)
        )
        return (
            select(
                Artifact,
                User.username,
                like_count.label("like_count"),
                user_liked.label("user_liked"),
            )
            .join(User, Artifact.user_id == User.user_id)
        )

    async def _commit(self, action: str):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action} artifact: {e}")
            raise ServerError(f"Failed to {action} artifact")

    @staticmethod
    def _visible_to(viewer_id: int):
        return or_(Artifact.user_id == viewer_id, Artifact.is_public == True)  # noqa: E712

    @staticmethod
    def _in_id_range(artifact_id: int) -> bool:
        return 1 <= artifact_id <= MAX_ARTIFACT_ID

    @staticmethod
    def _to_info(row) -> ArtifactInfo:
        artifact, username, like_count, user_liked = row
        return ArtifactInfo(
            artifact=artifact,
            username=username,
            like_count=like_count or 0,
            user_liked=bool(user_liked),
        )

    async def _get_owned(self, artifact_id: int, user_id: int) -> Artifact:
        """Get an artifact the user owns, or raise the same error as for a missing one."""
        if not self._in_id_range(artifact_id):
            raise ArtifactNotFoundError(NOT_OWNED_MESSAGE)
        result = await self.db.execute(
            select(Artifact).where(
                Artifact.id == artifact_id,
                Artifact.user_id == user_id,
            )
        )
        artifact = result.scalars().first()
        if not artifact:
            raise ArtifactNotFoundError(NOT_OWNED_MESSAGE)
        return artifact

    async def list(self, viewer_id: int) -> List[ArtifactInfo]:
        """List the viewer's own artifacts and all public ones, most recently updated first."""
        result = await self.db.execute(
            self._annotated_select(viewer_id)
            .where(self._visible_to(viewer_id))
            .order_by(Artifact.updated_at.desc(), Artifact.id.desc())
        )
        return [self._to_info(row) for row in result.all()]

    async def get(self, artifact_id: int, viewer_id: int) -> ArtifactInfo:
        """
        Get one artifact the viewer is allowed to see.

        Raises:
            ArtifactNotFoundError: missing, or private and owned by someone else
        """
        if not self._in_id_range(artifact_id):
            raise ArtifactNotFoundError()
        result = await self.db.execute(
            self._annotated_select(viewer_id)
            .where(Artifact.id == artifact_id, self._visible_to(viewer_id))
        )
        row = result.first()
        if row is None:
            raise ArtifactNotFoundError()
        return self._to_info(row)

    async def create(self, user_id: int, data: ArtifactCreate) -> ArtifactInfo:
        """Create an artifact owned by user_id."""
        if _is_blank(data.title) or _is_blank(data.type) or _is_blank(data.code):
            raise ValidationError("Title, type, and code are required")

        artifact = Artifact(
            user_id=user_id,
            title=data.title.strip(),
            type=validate_artifact_type(data.type),
            description=data.description,
            code=data.code,
            tags=normalize_tags(data.tags),
            is_public=bool(data.is_public),
        )
        self.db.add(artifact)
        await self._commit("create")
        await self.db.refresh(artifact)

        logger.info(f"User {user_id} created artifact {artifact.id} (type={artifact.type}, public={artifact.is_public})")
        return await self.get(artifact.id, user_id)

    async def update(self, artifact_id: int, user_id: int, data: ArtifactUpdate) -> ArtifactInfo:
        """
        Update the fields present in data and bump updated_at.

        Raises:
            ArtifactNotFoundError: no artifact with this id is owned by user_id
            ValidationError: a provided required field is blank or type is unknown
        """
        artifact = await self._get_owned(artifact_id, user_id)
        provided = data.model_fields_set

        if "title" in provided:
            if _is_blank(data.title):
                raise ValidationError("Title cannot be empty")
            artifact.title = data.title.strip()
        if "type" in provided:
            if _is_blank(data.type):
                raise ValidationError("Type cannot be empty")
            artifact.type = validate_artifact_type(data.type)
        if "code" in provided:
            if _is_blank(data.code):
                raise ValidationError("Code cannot be empty")
            artifact.code = data.code
        if "description" in provided:
            artifact.description = data.description
        if "tags" in provided:
            artifact.tags = normalize_tags(data.tags)
        if "is_public" in provided and data.is_public is not None:
            artifact.is_public = data.is_public

        artifact.updated_at = datetime.utcnow()
        await self._commit("update")

        logger.info(f"User {user_id} updated artifact {artifact_id} (fields={sorted(provided)})")
        return await self.get(artifact_id, user_id)

    async def delete(self, artifact_id: int, user_id: int) -> bool:
        """Delete an owned artifact and every like it received."""
        artifact = await self._get_owned(artifact_id, user_id)

        # Likes also cascade at the FK level; deleting them here keeps stores
        # without FK enforcement (SQLite without the pragma) consistent.
        await self.db.execute(delete(ArtifactLike).where(ArtifactLike.artifact_id == artifact_id))
        await self.db.delete(artifact)
        await self._commit("delete")

        logger.info(f"User {user_id} deleted artifact {artifact_id}")
        return True


async def get_artifact_service(db: AsyncSession = Depends(get_async_db)) -> ArtifactService:
    """Dependency injection provider."""
    return ArtifactService(db)
