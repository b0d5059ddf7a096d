from __future__ import annotations
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from storyline.config import get_settings


class Base(DeclarativeBase):
    pass


def _dsn() -> str:
    s = get_settings()
    if s.database_url:
        return s.database_url
    if not s.supabase_project_ref or not s.supabase_db_password:
        raise RuntimeError(
            "Database configuration required. Set DATABASE_URL, or SUPABASE_PROJECT_REF and SUPABASE_DB_PASSWORD."
        )
    host = f"db.{s.supabase_project_ref}.supabase.co"
    return f"postgresql+psycopg2://{s.supabase_db_user}:{s.supabase_db_password}@{host}:5432/{s.supabase_db_name}?sslmode=require"


def make_engine(url: str):
    if url.startswith("sqlite"):
        # Shared single connection so an in-memory database survives across threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


engine = None
SessionLocal = None


def get_session_factory() -> sessionmaker:
    """Lazily build the process-wide engine and session factory."""
    global engine, SessionLocal
    if SessionLocal is None:
        engine = make_engine(_dsn())
        SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal


def override_engine(e):  # test helper
    global engine, SessionLocal
    engine = e
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal


def create_all():
    """Create tables directly (SQLite/dev); production schemas go through Alembic."""
    from storyline.models import tables  # noqa: F401  registers mappers

    get_session_factory()
    Base.metadata.create_all(engine)


def healthcheck() -> bool:
    get_session_factory()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
        return True
