"""
Database handle for the intake service.

``Database`` owns the SQLAlchemy engine and session factory. The engine is
created on first use and reused afterwards; ``reset()`` disposes it so the
next call re-establishes the connection pool. One handle is created per app
and passed explicitly to the services that need it.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from intake.core.config import Settings

logger = logging.getLogger(__name__)


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Build create_engine() keyword arguments for the configured backend."""
    url = settings.DATABASE_URL or ""
    if url.startswith("sqlite"):
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DB_CONNECT_TIMEOUT,
            },
            "echo": settings.DEBUG,
        }
    return {
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "connect_args": {"connect_timeout": settings.DB_CONNECT_TIMEOUT},
        "echo": settings.DEBUG,
    }


def _create_tables(engine: Engine) -> None:
    from intake.db.base import Base
    import intake.models  # noqa: F401  (register tables on Base.metadata)

    Base.metadata.create_all(engine)


class Database:
    """Lazily-connected, resettable engine and session factory.

    With ``auto_create`` the tables are created as part of connecting, so a
    database that is down at startup gets its schema once it comes back.
    """

    def __init__(self, url: Optional[str], auto_create: bool = False, **options: Any):
        self._url = url
        self._auto_create = auto_create
        self._options = options
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            auto_create=settings.DB_AUTO_CREATE,
            **engine_options(settings),
        )

    @property
    def connected(self) -> bool:
        return self._engine is not None

    def _connect(self) -> Tuple[Engine, sessionmaker]:
        with self._lock:
            if self._engine is None:
                if not self._url:
                    raise RuntimeError("DATABASE_URL is not configured")
                logger.info("Connecting to database backend=%s", self._backend_name())
                engine = create_engine(self._url, **self._options)
                if self._auto_create:
                    # Nothing is cached until the tables exist, so a failed
                    # attempt is retried on the next use.
                    try:
                        _create_tables(engine)
                    except SQLAlchemyError:
                        engine.dispose()
                        raise
                # expire_on_commit=False keeps stored rows readable after
                # the session that wrote them is closed.
                self._session_factory = sessionmaker(
                    bind=engine,
                    autocommit=False,
                    autoflush=False,
                    expire_on_commit=False,
                )
                self._engine = engine
            return self._engine, self._session_factory

    @property
    def engine(self) -> Engine:
        return self._connect()[0]

    def _backend_name(self) -> str:
        return (self._url or "").split(":", 1)[0]

    def session(self) -> Session:
        """Open a new session; the caller must close it."""
        return self._connect()[1]()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        session = self.session()
        try:
            yield session
        finally:
            session.close()

    def create_schema(self) -> None:
        _create_tables(self.engine)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def reset(self) -> None:
        """Drop the cached engine so the next use reconnects."""
        with self._lock:
            engine = self._engine
            self._engine = None
            self._session_factory = None
        if engine is not None:
            logger.warning("Resetting database connection backend=%s", self._backend_name())
            engine.dispose()

    def handle_failure(self, exc: BaseException) -> None:
        """Reset the handle when ``exc`` means the connection itself is gone."""
        if isinstance(exc, OperationalError) or (
            isinstance(exc, DBAPIError) and exc.connection_invalidated
        ):
            self.reset()

    def dispose(self) -> None:
        with self._lock:
            engine = self._engine
            self._engine = None
            self._session_factory = None
        if engine is not None:
            engine.dispose()
