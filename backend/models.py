from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, JSON, Boolean, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
from enum import Enum as PyEnum

Base = declarative_base()

# Enums
class ArtifactType(str, PyEnum):
    """Render kinds an artifact can declare."""
    HTML = "html"
    REACT = "react"
    MARKDOWN = "markdown"
    MERMAID = "mermaid"
    SVG = "svg"


# Core User table
class User(Base):
    """User authentication and basic information"""
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    artifacts = relationship("Artifact", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("ArtifactLike", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class Artifact(Base):
    """Stored code snippet with a declared render type, owned by one user"""
    __tablename__ = "artifacts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    # Plain string rather than a DB enum so rows written before a type was
    # retired still load; the service validates against ArtifactType.
    type = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    code = Column(Text, nullable=False)
    tags = Column(JSON, nullable=False, default=list)  # ["tag", ...] order kept
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="artifacts")
    likes = relationship("ArtifactLike", back_populates="artifact", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_artifacts_updated_at", "updated_at"),
    )


class ArtifactLike(Base):
    """One user's like of one artifact"""
    __tablename__ = "artifact_likes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    artifact_id = Column(Integer, ForeignKey("artifacts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="likes")
    artifact = relationship("Artifact", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("user_id", "artifact_id", name="uq_artifact_likes_user_artifact"),
    )
