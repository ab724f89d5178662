from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings


class Base(DeclarativeBase):
    pass


def create_store_engine(url: str | None = None) -> Engine:
    """Create a sync engine for the credential store.

    In-memory sqlite URLs share a single connection so every session sees the
    same database.
    """
    url = url or settings.DATABASE_URL
    echo = settings.LOG_LEVEL == "DEBUG"

    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to the store engine."""
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
