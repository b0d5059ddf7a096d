"""SQLAlchemy-backed repository for projects, credentials, events, stories and call records.

Each method is one unit of work on its own session. Database failures surface as
``StoreError`` so services never deal with driver exceptions directly.
"""
from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator
import uuid
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from storyline.errors import InternalInvariantViolation, StoreError, StoryWriteError
from storyline.models.records import CallRecord, CredentialRecord, StoryEvent, StoryRecord
from storyline.models.tables import ActivityEvent, ApiCallRecord, ApiKeyCredential, Project, UserStory

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class ActivityStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session: Session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(str(exc)) from exc
        finally:
            session.close()

    # -- credentials -------------------------------------------------------

    def resolve_project(self, public_id: str) -> str | None:
        with self._session() as s:
            return s.scalar(select(Project.id).where(Project.public_id == public_id))

    def find_credential(self, api_key: str) -> CredentialRecord | None:
        with self._session() as s:
            row = s.execute(
                select(ApiKeyCredential, Project.owner_id)
                .join(Project, Project.id == ApiKeyCredential.project_id)
                .where(ApiKeyCredential.api_key == api_key)
            ).first()
            if row is None:
                return None
            cred, owner_id = row
            return CredentialRecord(
                id=cred.id,
                project_id=cred.project_id,
                api_secret=cred.api_secret,
                active=bool(cred.active),
                owner_id=owner_id,
            )

    def record_call(self, record: CallRecord) -> int:
        """Append an audit row and bump the credential's usage counter."""
        with self._session() as s:
            row = ApiCallRecord(
                api_key_id=record.api_key_id,
                owner_id=record.owner_id,
                project_id=record.project_id,
                endpoint=record.endpoint,
                call_type=record.call_type,
                request_metadata=record.request_metadata or {},
                response_status=record.response_status,
                response_time_ms=record.response_time_ms,
            )
            s.add(row)
            if record.api_key_id:
                s.execute(
                    update(ApiKeyCredential)
                    .where(ApiKeyCredential.id == record.api_key_id)
                    .values(usage_count=ApiKeyCredential.usage_count + 1, last_used_at=datetime.utcnow())
                )
            s.commit()
            return row.id

    # -- events ------------------------------------------------------------

    def insert_event(
        self,
        project_id: str,
        client_uuid: str,
        action: str,
        event: str,
        event_details: str,
        timestamp: datetime,
    ) -> str:
        with self._session() as s:
            row = ActivityEvent(
                id=str(uuid.uuid4()),
                project_id=project_id,
                client_uuid=client_uuid,
                action=action,
                event=event,
                event_details=event_details,
                timestamp=timestamp,
            )
            s.add(row)
            s.commit()
            return row.id

    def recent_events(self, project_id: str, client_uuid: str, limit: int) -> list[StoryEvent]:
        """Newest-first window of a client's events."""
        with self._session() as s:
            rows = s.scalars(
                select(ActivityEvent)
                .where(ActivityEvent.project_id == project_id, ActivityEvent.client_uuid == client_uuid)
                .order_by(ActivityEvent.timestamp.desc(), ActivityEvent.ingested_at.desc())
                .limit(limit)
            ).all()
            return [
                StoryEvent(action=r.action, event=r.event, event_details=r.event_details, timestamp=r.timestamp, id=r.id)
                for r in rows
            ]

    def count_events(self, project_id: str, client_uuid: str) -> int:
        with self._session() as s:
            return s.scalar(
                select(func.count(ActivityEvent.id))
                .where(ActivityEvent.project_id == project_id, ActivityEvent.client_uuid == client_uuid)
            ) or 0

    # -- stories -----------------------------------------------------------

    def get_story(self, project_id: str, client_uuid: str) -> StoryRecord | None:
        with self._session() as s:
            row = s.scalars(
                select(UserStory).where(UserStory.project_id == project_id, UserStory.client_uuid == client_uuid)
            ).first()
            if row is None:
                return None
            return StoryRecord(
                id=row.id,
                project_id=row.project_id,
                client_uuid=row.client_uuid,
                story_text=row.story_text,
                updated_at=row.updated_at,
            )

    def upsert_story(
        self,
        project_id: str,
        client_uuid: str,
        story_text: str,
        last_activity_log_id: str | None = None,
    ) -> StoryRecord:
        """Insert-or-update keyed on (project, client) in a single statement.

        The preliminary existence read only labels the result (created vs updated)
        and the error code; the write itself does not depend on it.
        """
        now = datetime.utcnow()
        session: Session = self._session_factory()
        existed = False
        try:
            existed = session.scalar(
                select(UserStory.id).where(UserStory.project_id == project_id, UserStory.client_uuid == client_uuid)
            ) is not None
            dialect = session.get_bind().dialect.name
            insert_fn = _UPSERT_DIALECTS.get(dialect)
            if insert_fn is None:
                raise StoryWriteError(f"upsert not supported for dialect {dialect}", existed)
            stmt = insert_fn(UserStory).values(
                id=str(uuid.uuid4()),
                project_id=project_id,
                client_uuid=client_uuid,
                story_text=story_text,
                last_activity_log_id=last_activity_log_id,
                generated_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["project_id", "client_uuid"],
                set_={
                    "story_text": stmt.excluded.story_text,
                    "last_activity_log_id": stmt.excluded.last_activity_log_id,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            session.execute(stmt)
            session.commit()
            row = session.scalars(
                select(UserStory).where(UserStory.project_id == project_id, UserStory.client_uuid == client_uuid)
            ).first()
            if row is None:
                raise InternalInvariantViolation("user story missing after upsert")
            return StoryRecord(
                id=row.id,
                project_id=row.project_id,
                client_uuid=row.client_uuid,
                story_text=row.story_text,
                created=not existed,
                updated_at=row.updated_at,
            )
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoryWriteError(str(exc), existed) from exc
        finally:
            session.close()
