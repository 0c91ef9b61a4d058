import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from intake.db.session import Database
from intake.main import create_app
from intake.services.blob_store import BlobStore
from intake.services.submission_repository import SubmissionRepository
from intake.services.submission_service import SubmissionService
from tests.helpers import StepClock, make_settings

# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="function")
def database():
    """
    In-memory SQLite handle shared by every session of a test.

    StaticPool keeps the single connection alive, so the schema and rows
    survive across the sessions the services open.
    """
    db = Database(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db.create_schema()

    yield db

    db.dispose()


@pytest.fixture(scope="function")
def blob_store(database):
    return BlobStore(database, chunk_size=64)


@pytest.fixture(scope="function")
def repository(database):
    return SubmissionRepository(database, clock=StepClock())


@pytest.fixture(scope="function")
def split_service(blob_store, repository):
    return SubmissionService(
        blob_store=blob_store,
        repository=repository,
        variant="split",
        clock_ms=lambda: 1700000000000,
    )


@pytest.fixture(scope="function")
def combined_service(blob_store, repository):
    return SubmissionService(
        blob_store=blob_store,
        repository=repository,
        variant="combined",
        clock_ms=lambda: 1700000000000,
    )


# -----------------------------------------------------------------------------
# Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="function")
def split_client(database):
    """TestClient for the split (internship/general) deployment."""
    app = create_app(make_settings(SCHEMA_VARIANT="split"), database=database)

    # Using 'with' context manager to trigger lifespan events (startup/shutdown)
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def combined_client(database):
    """TestClient for the combined (single contact form) deployment."""
    app = create_app(make_settings(SCHEMA_VARIANT="combined"), database=database)

    with TestClient(app) as c:
        yield c
