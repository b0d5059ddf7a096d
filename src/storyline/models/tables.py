from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, DateTime, JSON, ForeignKey, Text, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from storyline.infrastructure.db import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Project(Base):
    """Tenant-owned container. ``public_id`` is the only identifier callers ever see."""
    __tablename__ = "projects"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    public_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str | None] = mapped_column(String(256), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class ApiKeyCredential(Base):
    __tablename__ = "project_api_keys"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id"), index=True)
    api_key: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    api_secret: Mapped[str] = mapped_column(String(256))
    active: Mapped[int] = mapped_column(Integer, default=1, index=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class ActivityEvent(Base):
    """One reported client action. Rows are append-only."""
    __tablename__ = "client_activity_logs"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id"), index=True)
    client_uuid: Mapped[str] = mapped_column(Text, index=True)
    action: Mapped[str] = mapped_column(String(16), index=True)
    event: Mapped[str] = mapped_column(Text, index=True)
    event_details: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime, index=True)
    ingested_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("ix_activity_project_client_ts", "project_id", "client_uuid", "timestamp"),
    )


class UserStory(Base):
    __tablename__ = "client_user_stories"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id"), index=True)
    client_uuid: Mapped[str] = mapped_column(Text, index=True)
    story_text: Mapped[str] = mapped_column(Text)
    last_activity_log_id: Mapped[str | None] = mapped_column(String(36), default=None)
    generated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("project_id", "client_uuid", name="ux_user_story_project_client"),
    )


class ApiCallRecord(Base):
    __tablename__ = "api_calls"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    api_key_id: Mapped[str | None] = mapped_column(String(36), index=True, default=None)
    owner_id: Mapped[str | None] = mapped_column(String(64), index=True, default=None)
    project_id: Mapped[str | None] = mapped_column(String(36), index=True, default=None)
    endpoint: Mapped[str] = mapped_column(String(256), index=True)
    call_type: Mapped[str] = mapped_column(String(32), index=True)
    request_metadata: Mapped[dict] = mapped_column(JSON, default=dict)
    response_status: Mapped[int] = mapped_column(Integer, index=True)
    response_time_ms: Mapped[int | None] = mapped_column(Integer, default=None)
    called_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
