"""
Like Service - Per-user artifact likes

A user likes an artifact at most once. Toggling flips between liked and not
liked; counts are computed from the ledger so they can never drift.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import and_, select, func
from fastapi import Depends

from models import ArtifactLike
from database import get_async_db

logger = logging.getLogger(__name__)


class LikeService:
    """
    Service for like toggling and counting.

    Callers are expected to check that the artifact is visible to the user
    first (see routers/artifacts.py).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def toggle_like(self, user_id: int, artifact_id: int) -> bool:
        """
        Toggle the like of an artifact for a user.

        Returns:
            True if the artifact is now liked, False if unliked
        """
        result = await self.db.execute(
            select(ArtifactLike).where(
                and_(
                    ArtifactLike.user_id == user_id,
                    ArtifactLike.artifact_id == artifact_id
                )
            )
        )
        existing = result.scalars().first()

        if existing:
            await self.db.delete(existing)
            await self.db.commit()
            logger.info(f"User {user_id} unliked artifact {artifact_id}")
            return False

        self.db.add(ArtifactLike(user_id=user_id, artifact_id=artifact_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent toggle inserted the same pair first; the pair is liked either way
            await self.db.rollback()
            logger.info(f"User {user_id} like of artifact {artifact_id} already recorded")
            return True

        logger.info(f"User {user_id} liked artifact {artifact_id}")
        return True

    async def get_like_count(self, artifact_id: int) -> int:
        """Number of users who like the artifact."""
        result = await self.db.execute(
            select(func.count(ArtifactLike.id)).where(ArtifactLike.artifact_id == artifact_id)
        )
        return result.scalar() or 0


# Dependency injection provider
async def get_like_service(
    db: AsyncSession = Depends(get_async_db)
) -> LikeService:
    """Get a LikeService instance with async database session."""
    return LikeService(db)
