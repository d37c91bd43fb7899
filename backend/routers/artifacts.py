"""
Artifacts Router - REST endpoints for artifact CRUD, likes and previews.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from typing import List
import logging

from schemas.user import CurrentUser
from schemas.artifact import (
    ArtifactCreate, ArtifactUpdate, ArtifactSchema,
    ToggleLikeResponse, MessageResponse,
)
from services import auth_service
from services.artifact_service import ArtifactService, ArtifactInfo, get_artifact_service
from services.like_service import LikeService, get_like_service
from services.preview_service import PreviewService, get_preview_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/artifacts", tags=["artifacts"])


def _to_artifact_schema(info: ArtifactInfo) -> ArtifactSchema:
    """Convert ArtifactInfo dataclass to ArtifactSchema"""
    artifact = info.artifact
    return ArtifactSchema(
        id=artifact.id,
        user_id=artifact.user_id,
        username=info.username,
        title=artifact.title,
        type=artifact.type,
        description=artifact.description,
        code=artifact.code,
        tags=artifact.tags or [],
        is_public=bool(artifact.is_public),
        like_count=info.like_count,
        user_liked=info.user_liked,
        created_at=artifact.created_at,
        updated_at=artifact.updated_at,
    )


# =============================================================================
# Artifact CRUD
# =============================================================================

@router.get("", response_model=List[ArtifactSchema])
async def list_artifacts(
    current_user: CurrentUser = Depends(auth_service.validate_token),
    artifact_service: ArtifactService = Depends(get_artifact_service),
):
    """List the current user's artifacts plus every public artifact, newest update first."""
    infos = await artifact_service.list(current_user.user_id)
    return [_to_artifact_schema(info) for info in infos]


@router.post("", response_model=ArtifactSchema, status_code=201)
async def create_artifact(
    data: ArtifactCreate,
    current_user: CurrentUser = Depends(auth_service.validate_token),
    artifact_service: ArtifactService = Depends(get_artifact_service),
):
    """Create a new artifact owned by the current user."""
    info = await artifact_service.create(current_user.user_id, data)
    return _to_artifact_schema(info)


@router.get("/{artifact_id}", response_model=ArtifactSchema)
async def get_artifact(
    artifact_id: int,
    current_user: CurrentUser = Depends(auth_service.validate_token),
    artifact_service: ArtifactService = Depends(get_artifact_service),
):
    """Get an artifact the current user owns or that is public."""
    info = await artifact_service.get(artifact_id, current_user.user_id)
    return _to_artifact_schema(info)


@router.put("/{artifact_id}", response_model=ArtifactSchema)
async def update_artifact(
    artifact_id: int,
    data: ArtifactUpdate,
    current_user: CurrentUser = Depends(auth_service.validate_token),
    artifact_service: ArtifactService = Depends(get_artifact_service),
):
    """Update an artifact. Owner only; anyone else gets 404."""
    info = await artifact_service.update(artifact_id, current_user.user_id, data)
    return _to_artifact_schema(info)


@router.delete("/{artifact_id}", response_model=MessageResponse)
async def delete_artifact(
    artifact_id: int,
    current_user: CurrentUser = Depends(auth_service.validate_token),
    artifact_service: ArtifactService = Depends(get_artifact_service),
):
    """Delete an artifact and its likes. Owner only; anyone else gets 404."""
    await artifact_service.delete(artifact_id, current_user.user_id)
    return MessageResponse(message="Artifact deleted successfully")


# =============================================================================
# Likes
# =============================================================================

@router.post("/{artifact_id}/like", response_model=ToggleLikeResponse)
async def toggle_like(
    artifact_id: int,
    current_user: CurrentUser = Depends(auth_service.validate_token),
    artifact_service: ArtifactService = Depends(get_artifact_service),
    like_service: LikeService = Depends(get_like_service),
):
    """
    Toggle the current user's like on an artifact.

    Returns the new like state and the artifact's like count.
    """
    logger.info(f"toggle_like - user_id={current_user.user_id}, artifact_id={artifact_id}")

    # Verify user can see the artifact
    await artifact_service.get(artifact_id, current_user.user_id)

    liked = await like_service.toggle_like(
        user_id=current_user.user_id,
        artifact_id=artifact_id
    )
    like_count = await like_service.get_like_count(artifact_id)

    logger.info(f"toggle_like complete - liked={liked}, like_count={like_count}")
    return ToggleLikeResponse(liked=liked, like_count=like_count)


# =============================================================================
# Preview
# =============================================================================

@router.get("/{artifact_id}/preview", response_class=HTMLResponse)
async def preview_artifact(
    artifact_id: int,
    current_user: CurrentUser = Depends(auth_service.validate_token),
    artifact_service: ArtifactService = Depends(get_artifact_service),
    preview_service: PreviewService = Depends(get_preview_service),
):
    """
    Render the artifact as a standalone sandboxed HTML document.

    The response carries a CSP sandbox header, so even when opened directly
    the document runs in an opaque origin isolated from this application.
    """
    info = await artifact_service.get(artifact_id, current_user.user_id)
    document = preview_service.render(info.artifact.type, info.artifact.code)
    return HTMLResponse(content=document.html, headers=document.headers)
