"""
App State - typed client-side application state with explicit transitions.

Holds what a front end needs between API calls (session, loaded artifacts,
filters, edit form, preview selection). State only changes through the
AppStore methods, each of which is one named transition:

    login / register / logout
    load_artifacts
    set_search / set_type_filter / set_scope_filter
    start_create / start_edit / update_form / cancel_edit / save
    delete / toggle_like
    open_preview / close_preview

API failures are recorded in state.error and re-raised to the caller. A 401
or 403 from the API ends the session (same as logout).
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from client.api_client import ApiError, ArtifactApiClient, ClientSession
from models import ArtifactType

logger = logging.getLogger(__name__)

ARTIFACT_TYPES = [t.value for t in ArtifactType]
TYPE_FILTER_ALL = "all"


class Scope(str, Enum):
    """Which artifacts the list shows"""
    ALL = "all"
    MINE = "mine"
    PUBLIC = "public"


class NotLoggedInError(Exception):
    """Raised when a transition that needs a session runs without one."""


@dataclass
class ArtifactView:
    """An artifact as returned by the API"""
    id: int
    user_id: int
    username: str
    title: str
    type: str
    code: str
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    is_public: bool = False
    like_count: int = 0
    user_liked: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ArtifactView":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            username=data.get("username", ""),
            title=data["title"],
            type=data["type"],
            code=data["code"],
            description=data.get("description"),
            tags=list(data.get("tags") or []),
            is_public=bool(data.get("isPublic", False)),
            like_count=int(data.get("likeCount", 0)),
            user_liked=bool(data.get("userLiked", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class ArtifactForm:
    """Create/edit form contents. Tags are kept as the comma-separated text the user typed."""
    title: str = ""
    type: str = "html"
    description: str = ""
    code: str = ""
    tags: str = ""
    is_public: bool = False

    @classmethod
    def from_artifact(cls, artifact: ArtifactView) -> "ArtifactForm":
        return cls(
            title=artifact.title,
            type=artifact.type,
            description=artifact.description or "",
            code=artifact.code,
            tags=", ".join(artifact.tags),
            is_public=artifact.is_public,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "type": self.type,
            "description": self.description,
            "code": self.code,
            "tags": [tag.strip() for tag in self.tags.split(",") if tag.strip()],
            "isPublic": self.is_public,
        }


@dataclass
class AppState:
    session: Optional[ClientSession] = None
    artifacts: List[ArtifactView] = field(default_factory=list)
    search: str = ""
    type_filter: str = TYPE_FILTER_ALL
    scope: Scope = Scope.ALL
    form: ArtifactForm = field(default_factory=ArtifactForm)
    editing_id: Optional[int] = None
    preview_id: Optional[int] = None
    error: Optional[str] = None
    loaded_at: Optional[datetime] = None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    @property
    def preview_artifact(self) -> Optional[ArtifactView]:
        return self._find(self.preview_id)

    def _find(self, artifact_id: Optional[int]) -> Optional[ArtifactView]:
        if artifact_id is None:
            return None
        return next((a for a in self.artifacts if a.id == artifact_id), None)

    def visible_artifacts(self) -> List[ArtifactView]:
        """Loaded artifacts after the search, type and scope filters."""
        term = self.search.strip().lower()
        user_id = self.session.user.id if self.session else None

        def matches_search(a: ArtifactView) -> bool:
            if not term:
                return True
            return (
                term in a.title.lower()
                or term in (a.description or "").lower()
                or any(term in tag.lower() for tag in a.tags)
                or term in a.username.lower()
            )

        def matches_scope(a: ArtifactView) -> bool:
            if self.scope == Scope.MINE:
                return a.user_id == user_id
            if self.scope == Scope.PUBLIC:
                return a.is_public
            return True

        return [
            a for a in self.artifacts
            if matches_search(a)
            and (self.type_filter == TYPE_FILTER_ALL or a.type == self.type_filter)
            and matches_scope(a)
        ]


class AppStore:
    """Owns an AppState and the API client; every mutation is a method here."""

    def __init__(self, api: ArtifactApiClient, session: Optional[ClientSession] = None):
        self.api = api
        self.state = AppState(session=session)

    # ==================== Internals ====================

    def _require_session(self) -> ClientSession:
        if self.state.session is None:
            raise NotLoggedInError("Login required")
        return self.state.session

    def _fail(self, error: ApiError):
        self.state.error = error.message
        if error.is_auth_failure and self.state.session is not None:
            logger.info("Session rejected by API, logging out")
            self.logout(keep_error=True)

    # ==================== Session ====================

    def login(self, username: str, password: str) -> ClientSession:
        self.state.error = None
        try:
            session = self.api.login(username, password)
        except ApiError as e:
            self.state.error = e.message
            raise
        self.state.session = session
        self.load_artifacts()
        return session

    def register(self, username: str, email: str, password: str) -> ClientSession:
        self.state.error = None
        try:
            session = self.api.register(username, email, password)
        except ApiError as e:
            self.state.error = e.message
            raise
        self.state.session = session
        self.load_artifacts()
        return session

    def logout(self, keep_error: bool = False):
        error = self.state.error if keep_error else None
        self.state = AppState(error=error)

    # ==================== Loading & filters ====================

    def load_artifacts(self) -> List[ArtifactView]:
        session = self._require_session()
        try:
            data = self.api.list_artifacts(session)
        except ApiError as e:
            self._fail(e)
            raise
        self.state.artifacts = [ArtifactView.from_json(item) for item in data]
        self.state.loaded_at = datetime.utcnow()
        # Drop selections that no longer exist
        if self.state._find(self.state.preview_id) is None:
            self.state.preview_id = None
        return self.state.artifacts

    def set_search(self, term: str):
        self.state.search = term

    def set_type_filter(self, artifact_type: str):
        if artifact_type != TYPE_FILTER_ALL and artifact_type not in ARTIFACT_TYPES:
            raise ValueError(f"Unknown artifact type filter: {artifact_type}")
        self.state.type_filter = artifact_type

    def set_scope_filter(self, scope: Scope):
        self.state.scope = Scope(scope)

    # ==================== Editing ====================

    def start_create(self):
        self.state.form = ArtifactForm()
        self.state.editing_id = None

    def start_edit(self, artifact_id: int):
        artifact = self.state._find(artifact_id)
        if artifact is None:
            raise KeyError(f"Artifact {artifact_id} is not loaded")
        self.state.form = ArtifactForm.from_artifact(artifact)
        self.state.editing_id = artifact_id

    def update_form(self, **fields):
        self.state.form = replace(self.state.form, **fields)

    def cancel_edit(self):
        self.state.form = ArtifactForm()
        self.state.editing_id = None

    def save(self) -> ArtifactView:
        """Create or update from the form, then reload the list and reset the form."""
        session = self._require_session()
        self.state.error = None
        payload = self.state.form.to_payload()
        try:
            if self.state.is_editing:
                data = self.api.update_artifact(session, self.state.editing_id, payload)
            else:
                data = self.api.create_artifact(session, payload)
        except ApiError as e:
            self._fail(e)
            raise
        saved = ArtifactView.from_json(data)
        self.cancel_edit()
        self.load_artifacts()
        return saved

    def delete(self, artifact_id: int):
        session = self._require_session()
        try:
            self.api.delete_artifact(session, artifact_id)
        except ApiError as e:
            self._fail(e)
            raise
        if self.state.editing_id == artifact_id:
            self.cancel_edit()
        if self.state.preview_id == artifact_id:
            self.state.preview_id = None
        self.load_artifacts()

    def toggle_like(self, artifact_id: int) -> bool:
        session = self._require_session()
        try:
            result = self.api.toggle_like(session, artifact_id)
        except ApiError as e:
            self._fail(e)
            raise
        self.load_artifacts()
        return result["liked"]

    # ==================== Preview ====================

    def open_preview(self, artifact_id: int) -> ArtifactView:
        artifact = self.state._find(artifact_id)
        if artifact is None:
            raise KeyError(f"Artifact {artifact_id} is not loaded")
        self.state.preview_id = artifact_id
        return artifact

    def close_preview(self):
        self.state.preview_id = None
