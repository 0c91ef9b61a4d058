from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from intake.core.errors import PersistenceError
from intake.db.session import Database
from intake.models.submission import Submission
from intake.schemas.submission import SubmissionKind

logger = logging.getLogger(__name__)

COLUMNS = (
    "name",
    "last_name",
    "mobile",
    "email",
    "subject",
    "message",
    "resume_file_id",
    "resume_file_name",
)


class SubmissionRepository:
    """Insert-and-list persistence for submission records."""

    def __init__(
        self,
        database: Database,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.database = database
        self._clock = clock

    def insert(self, kind: SubmissionKind, fields: Mapping[str, object]) -> Submission:
        """Persist a new record; ``created_at`` is assigned here and never changed."""
        unknown = set(fields) - set(COLUMNS)
        if unknown:
            raise ValueError(f"Unknown submission fields: {', '.join(sorted(unknown))}")

        values: Dict[str, Optional[object]] = {column: fields.get(column) for column in COLUMNS}
        record = Submission(kind=kind.value, created_at=self._clock(), **values)

        try:
            session = self.database.session()
        except SQLAlchemyError as exc:
            self.database.handle_failure(exc)
            logger.error("Submission insert failed kind=%s error=%s", kind.value, exc)
            raise PersistenceError(f"Failed to save {kind.value} submission: {exc}") from exc

        try:
            session.add(record)
            session.commit()
            session.refresh(record)
            session.expunge(record)
        except SQLAlchemyError as exc:
            session.rollback()
            self.database.handle_failure(exc)
            logger.error("Submission insert failed kind=%s error=%s", kind.value, exc)
            raise PersistenceError(f"Failed to save {kind.value} submission: {exc}") from exc
        finally:
            session.close()

        logger.info(
            "Submission stored kind=%s id=%s has_resume=%s",
            kind.value,
            record.id,
            record.resume_file_id is not None,
        )
        return record

    def list_all(self, kind: SubmissionKind) -> List[Submission]:
        """Return every record of ``kind``, newest first; ties keep insertion order."""
        try:
            with self.database.session_scope() as session:
                rows = session.execute(
                    select(Submission)
                    .where(Submission.kind == kind.value)
                    .order_by(Submission.created_at.desc(), Submission.id.asc())
                ).scalars().all()
                session.expunge_all()
        except SQLAlchemyError as exc:
            self.database.handle_failure(exc)
            raise PersistenceError(f"Failed to list {kind.value} submissions: {exc}") from exc
        return list(rows)

    def count(self, kind: SubmissionKind) -> int:
        try:
            with self.database.session_scope() as session:
                return session.execute(
                    select(func.count())
                    .select_from(Submission)
                    .where(Submission.kind == kind.value)
                ).scalar_one()
        except SQLAlchemyError as exc:
            self.database.handle_failure(exc)
            raise PersistenceError(f"Failed to count {kind.value} submissions: {exc}") from exc
