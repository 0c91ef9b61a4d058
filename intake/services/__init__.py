"""
Intake services.

Services:
    - BlobStore: chunked resume storage keyed by generated UUIDs
    - SubmissionRepository: insert/list persistence for submission records
    - SubmissionService: validation and store-then-insert orchestration
"""

from .blob_store import BlobMetadata, BlobStore
from .submission_repository import SubmissionRepository
from .submission_service import ResumeUpload, SubmissionService

__all__ = [
    "BlobMetadata",
    "BlobStore",
    "ResumeUpload",
    "SubmissionRepository",
    "SubmissionService",
]
