"""Database base configuration."""
import os
import ssl
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


def normalize_async_pg_url(url: str) -> str:
    """Ensure URL uses asyncpg driver; cloud often gives postgresql:// (sync)."""
    u = (url or "").strip()
    if u.startswith("postgres://"):
        return u.replace("postgres://", "postgresql+asyncpg://", 1)
    if u.startswith("postgresql://"):
        return u.replace("postgresql://", "postgresql+asyncpg://", 1)
    return u


def _ssl_context_no_verify() -> ssl.SSLContext:
    """SSL context that skips certificate verification (managed Postgres with self-signed chains)."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def async_pg_connect_args(url: str) -> dict:
    """connect_args for asyncpg: asyncpg does not accept sslmode, so translate sslmode=require to ssl.
    Set DATABASE_SSL_VERIFY=true for strict certificate verification."""
    parsed = urlparse(url)
    qs = parse_qs(parsed.query, keep_blank_values=True)
    if qs.get("sslmode") != ["require"]:
        return {}
    verify = os.environ.get("DATABASE_SSL_VERIFY", "false").strip().lower()
    if verify in ("true", "1"):
        return {"ssl": True}
    return {"ssl": _ssl_context_no_verify()}


def async_pg_url_without_sslmode(url: str) -> str:
    """Return URL with sslmode removed so asyncpg does not get unknown kwarg sslmode."""
    parsed = urlparse(url)
    qs = parse_qs(parsed.query, keep_blank_values=True)
    qs.pop("sslmode", None)
    new_query = urlencode(qs, doseq=True)
    return urlunparse(parsed._replace(query=new_query))


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for a URL (asyncpg for Postgres, aiosqlite for SQLite)."""
    url = normalize_async_pg_url(database_url)
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=echo, **kwargs)
    return create_async_engine(
        async_pg_url_without_sslmode(url),
        connect_args=async_pg_connect_args(url),
        echo=echo,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# Models are imported by tourney/infra/db/models/__init__.py, not here:
# base.py -> models -> base.py would be circular.
