"""
Submission Service.

Validates contact and internship submissions, stores the optional resume in
the blob store and persists the record referencing it.

The two writes (blob, then record) are not a transaction: when the record
insert fails after the blob was committed, the blob stays behind without an
owner. Such orphans are logged with their id and are not cleaned up.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Dict, Iterator, List, Mapping, Optional, Tuple
from uuid import UUID

from intake.core.config import SchemaVariant, Settings
from intake.core.errors import (
    InvalidId,
    PayloadTooLarge,
    PersistenceError,
    UnsupportedMediaType,
    ValidationError,
)
from intake.models.submission import Submission
from intake.schemas.submission import (
    KIND_RULES,
    VARIANT_KINDS,
    AttachmentPolicy,
    KindRules,
    StoredRecord,
    SubmissionKind,
    external_name,
)
from intake.services.blob_store import BlobMetadata, BlobStore
from intake.services.submission_repository import SubmissionRepository

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
MAX_RESUME_BYTES = 5 * 1024 * 1024  # 5MB


@dataclass
class ResumeUpload:
    """An uploaded resume as received from the multipart decoder."""

    filename: str
    content_type: Optional[str]
    stream: BinaryIO


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class SubmissionService:
    """Validates, stores and lists submissions for one schema variant."""

    def __init__(
        self,
        blob_store: BlobStore,
        repository: SubmissionRepository,
        variant: SchemaVariant = SchemaVariant.SPLIT,
        max_resume_bytes: int = MAX_RESUME_BYTES,
        accepted_content_type: str = PDF_CONTENT_TYPE,
        download_prefix: str = "/api/resume",
        clock_ms: Callable[[], int] = lambda: time.time_ns() // 1_000_000,
    ):
        self.blob_store = blob_store
        self.repository = repository
        self.variant = SchemaVariant(variant)
        self.max_resume_bytes = max_resume_bytes
        self.accepted_content_type = accepted_content_type
        self.download_prefix = download_prefix.rstrip("/")
        self._clock_ms = clock_ms

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        blob_store: BlobStore,
        repository: SubmissionRepository,
    ) -> "SubmissionService":
        return cls(
            blob_store=blob_store,
            repository=repository,
            variant=settings.SCHEMA_VARIANT,
            max_resume_bytes=settings.RESUME_MAX_BYTES,
            accepted_content_type=settings.RESUME_CONTENT_TYPE,
            download_prefix=settings.RESUME_ROUTE_PREFIX,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _rules(self, kind: SubmissionKind) -> KindRules:
        if kind not in VARIANT_KINDS[self.variant]:
            raise ValidationError(
                f"Submission kind '{kind.value}' is not available in the "
                f"{self.variant.value} variant"
            )
        return KIND_RULES[kind]

    def _validate_fields(
        self, rules: KindRules, fields: Mapping[str, Optional[str]]
    ) -> Dict[str, Optional[str]]:
        values = {field: _clean(fields.get(field)) for field in rules.fields}
        missing = [external_name(field) for field in rules.missing(values)]
        if missing:
            logger.warning(
                "Submission rejected kind=%s missing=%s", rules.kind.value, missing
            )
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", missing=missing
            )
        return values

    def _read_resume(self, resume: ResumeUpload) -> bytes:
        """Apply the type and size limits, then buffer the upload in memory."""
        content_type = (resume.content_type or "").split(";", 1)[0].strip().lower()
        if content_type != self.accepted_content_type:
            logger.warning(
                "Resume rejected filename=%s content_type=%s",
                resume.filename,
                resume.content_type,
            )
            raise UnsupportedMediaType("Only PDF files are allowed!")

        content = resume.stream.read(self.max_resume_bytes + 1)
        if len(content) > self.max_resume_bytes:
            logger.warning(
                "Resume rejected filename=%s size_over_limit=%s",
                resume.filename,
                self.max_resume_bytes,
            )
            limit_mb = self.max_resume_bytes / (1024 * 1024)
            raise PayloadTooLarge(f"Resume exceeds the {limit_mb:g}MB limit")
        if not content:
            raise ValidationError("Resume file is empty", missing=["resume"])
        return content

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def submit_with_attachment(
        self,
        kind: SubmissionKind,
        fields: Mapping[str, Optional[str]],
        resume: Optional[ResumeUpload],
    ) -> StoredRecord:
        """Validate, store the resume (if any), then insert the record."""
        rules = self._rules(kind)
        values = self._validate_fields(rules, fields)

        if resume is None:
            if rules.attachment is AttachmentPolicy.REQUIRED:
                raise ValidationError("Resume file is required", missing=["resume"])
            return self._insert(rules, values)

        if rules.attachment is AttachmentPolicy.FORBIDDEN:
            raise ValidationError(
                f"Attachments are not accepted for {rules.label} submissions"
            )

        content = self._read_resume(resume)
        stored_name = f"resume_{self._clock_ms()}_{resume.filename}"
        blob_id = self.blob_store.put(
            stored_name, self.accepted_content_type, (content,)
        )

        values["resume_file_id"] = blob_id
        values["resume_file_name"] = stored_name
        try:
            return self._insert(rules, values)
        except PersistenceError:
            logger.error(
                "Record insert failed after resume was stored; orphan blob id=%s",
                blob_id,
            )
            raise

    def submit_without_attachment(
        self, kind: SubmissionKind, fields: Mapping[str, Optional[str]]
    ) -> StoredRecord:
        """Validate and insert a record that carries no resume."""
        rules = self._rules(kind)
        values = self._validate_fields(rules, fields)
        if rules.attachment is AttachmentPolicy.REQUIRED:
            raise ValidationError("Resume file is required", missing=["resume"])
        return self._insert(rules, values)

    def fetch_resume(self, resume_id: str) -> Tuple[BlobMetadata, Iterator[bytes]]:
        """Look up a stored resume by its public id and open its content stream."""
        try:
            blob_id = UUID(str(resume_id))
        except (TypeError, ValueError, AttributeError):
            raise InvalidId("Invalid resume ID") from None
        return self.blob_store.get(blob_id)

    def list_records(self, kind: SubmissionKind) -> List[StoredRecord]:
        rules = self._rules(kind)
        return [self._to_record(rules, row) for row in self.repository.list_all(kind)]

    def download_url(self, file_id: Optional[UUID]) -> Optional[str]:
        if file_id is None:
            return None
        return f"{self.download_prefix}/{file_id}"

    # ------------------------------------------------------------------

    def _insert(self, rules: KindRules, values: Dict[str, object]) -> StoredRecord:
        row = self.repository.insert(rules.kind, values)
        return self._to_record(rules, row)

    def _to_record(self, rules: KindRules, row: Submission) -> StoredRecord:
        record = rules.record_model.model_validate(row)
        record.resume_download_url = self.download_url(row.resume_file_id)
        return record
