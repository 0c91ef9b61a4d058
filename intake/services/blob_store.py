"""
Chunked binary storage for uploaded resumes.

Files are split into fixed-size chunks and written together with their
metadata row in a single transaction, so readers never observe a partial
upload. Downloads are pulled chunk by chunk through a generator.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from intake.core.errors import NotFound, StorageReadError, StorageWriteError
from intake.db.session import Database
from intake.models.blob import BlobChunk, BlobFile

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 255 * 1024
DEFAULT_BUCKET = "resumes"


@dataclass(frozen=True)
class BlobMetadata:
    """Descriptive data of a stored blob."""

    id: UUID
    filename: str
    content_type: str
    length: int
    chunk_size: int
    sha256: str
    upload_date: datetime

    @property
    def chunk_count(self) -> int:
        return -(-self.length // self.chunk_size)

    @classmethod
    def from_row(cls, row: BlobFile) -> "BlobMetadata":
        return cls(
            id=row.id,
            filename=row.filename,
            content_type=row.content_type,
            length=row.length,
            chunk_size=row.chunk_size,
            sha256=row.sha256,
            upload_date=row.upload_date,
        )


def rechunk(stream: Iterable[bytes], chunk_size: int) -> Iterator[bytes]:
    """Re-slice an iterable of byte strings into ``chunk_size`` pieces."""
    buffer = bytearray()
    for piece in stream:
        buffer.extend(piece)
        while len(buffer) >= chunk_size:
            yield bytes(buffer[:chunk_size])
            del buffer[:chunk_size]
    if buffer:
        yield bytes(buffer)


class BlobStore:
    """Stores immutable blobs under generated UUIDs within one bucket."""

    def __init__(
        self,
        database: Database,
        bucket: str = DEFAULT_BUCKET,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.database = database
        self.bucket = bucket
        self.chunk_size = chunk_size
        self._clock = clock

    def put(self, name: str, content_type: str, chunks: Iterable[bytes]) -> UUID:
        """
        Write ``chunks`` as a new blob and return its id.

        The id is only returned once the transaction holding the metadata
        row and every chunk has committed. Any fault rolls the whole blob
        back and raises StorageWriteError.
        """
        blob_id = uuid4()
        digest = hashlib.sha256()
        length = 0

        try:
            session = self.database.session()
        except SQLAlchemyError as exc:
            self.database.handle_failure(exc)
            logger.error("Blob write failed name=%s error=%s", name, exc)
            raise StorageWriteError(f"Failed to store {name}: {exc}") from exc

        try:
            n = 0
            for n, data in enumerate(rechunk(chunks, self.chunk_size)):
                digest.update(data)
                length += len(data)
                session.add(BlobChunk(file_id=blob_id, n=n, data=data))

            if length == 0:
                raise StorageWriteError("Refusing to store an empty blob")

            session.add(
                BlobFile(
                    id=blob_id,
                    bucket=self.bucket,
                    filename=name,
                    content_type=content_type,
                    length=length,
                    chunk_size=self.chunk_size,
                    sha256=digest.hexdigest(),
                    upload_date=self._clock(),
                )
            )
            session.commit()
        except StorageWriteError:
            session.rollback()
            raise
        except (SQLAlchemyError, OSError) as exc:
            session.rollback()
            self.database.handle_failure(exc)
            logger.error("Blob write failed name=%s error=%s", name, exc)
            raise StorageWriteError(f"Failed to store {name}: {exc}") from exc
        finally:
            session.close()

        logger.info(
            "Blob stored id=%s bucket=%s size=%s chunks=%s sha256=%s",
            blob_id,
            self.bucket,
            length,
            n + 1,
            digest.hexdigest(),
        )
        return blob_id

    def find(self, blob_id: UUID) -> Optional[BlobMetadata]:
        """Return metadata for ``blob_id`` or None when it does not exist."""
        try:
            with self.database.session_scope() as session:
                row = session.execute(
                    select(BlobFile).where(
                        BlobFile.id == blob_id, BlobFile.bucket == self.bucket
                    )
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            self.database.handle_failure(exc)
            raise StorageReadError(f"Failed to look up blob {blob_id}: {exc}") from exc
        return BlobMetadata.from_row(row) if row is not None else None

    def get(self, blob_id: UUID) -> Tuple[BlobMetadata, Iterator[bytes]]:
        """Return metadata plus a lazy, single-pass iterator over the content."""
        meta = self.find(blob_id)
        if meta is None:
            raise NotFound(f"Blob {blob_id} not found")
        return meta, self.open_download_stream(meta)

    def open_download_stream(self, meta: BlobMetadata) -> Iterator[bytes]:
        """
        Yield the chunks of ``meta`` in order.

        Nothing is read until the first ``next()``; the session is released
        when the generator is exhausted or closed.
        """
        try:
            session = self.database.session()
        except SQLAlchemyError as exc:
            self.database.handle_failure(exc)
            logger.error("Blob read failed id=%s error=%s", meta.id, exc)
            raise StorageReadError(f"Failed to open blob {meta.id}: {exc}") from exc

        try:
            for n in range(meta.chunk_count):
                try:
                    data = session.execute(
                        select(BlobChunk.data).where(
                            BlobChunk.file_id == meta.id, BlobChunk.n == n
                        )
                    ).scalar_one_or_none()
                except SQLAlchemyError as exc:
                    self.database.handle_failure(exc)
                    logger.error("Blob read failed id=%s chunk=%s error=%s", meta.id, n, exc)
                    raise StorageReadError(
                        f"Failed to read chunk {n} of blob {meta.id}: {exc}"
                    ) from exc
                if data is None:
                    logger.error("Blob chunk missing id=%s chunk=%s", meta.id, n)
                    raise StorageReadError(f"Chunk {n} of blob {meta.id} is missing")
                yield data
        finally:
            session.close()

    def count(self) -> int:
        with self.database.session_scope() as session:
            return session.execute(
                select(func.count()).select_from(BlobFile).where(
                    BlobFile.bucket == self.bucket
                )
            ).scalar_one()
