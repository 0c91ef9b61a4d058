from fastapi import Depends, Request

from intake.core.config import Settings
from intake.db.session import Database
from intake.services.blob_store import BlobStore
from intake.services.submission_repository import SubmissionRepository
from intake.services.submission_service import SubmissionService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """
    Database handle dependency.

    The handle is created once by ``create_app`` and shared by every request;
    it connects lazily on first use.
    """
    return request.app.state.database


def get_blob_store(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> BlobStore:
    return BlobStore(
        database,
        bucket=settings.RESUME_BUCKET,
        chunk_size=settings.BLOB_CHUNK_SIZE,
    )


def get_submission_repository(
    database: Database = Depends(get_database),
) -> SubmissionRepository:
    return SubmissionRepository(database)


def get_submission_service(
    settings: Settings = Depends(get_settings),
    blob_store: BlobStore = Depends(get_blob_store),
    repository: SubmissionRepository = Depends(get_submission_repository),
) -> SubmissionService:
    return SubmissionService.from_settings(settings, blob_store, repository)
