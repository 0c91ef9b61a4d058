import hashlib
import logging
from uuid import uuid4

import pytest
from sqlalchemy import delete

from intake.core.errors import NotFound, StorageReadError, StorageWriteError
from intake.db.session import Database
from intake.models.blob import BlobChunk
from intake.services.blob_store import BlobStore, rechunk


def test_rechunk_reslices_uneven_pieces():
    pieces = [b"ab", b"cdefg", b"", b"hij"]
    assert list(rechunk(pieces, 4)) == [b"abcd", b"efgh", b"ij"]


def test_put_then_get_returns_identical_bytes_and_metadata(blob_store):
    content = bytes(range(256)) * 3 + b"tail"

    blob_id = blob_store.put("resume_1_cv.pdf", "application/pdf", [content])
    meta, chunks = blob_store.get(blob_id)
    pieces = list(chunks)

    assert b"".join(pieces) == content
    assert len(pieces) == meta.chunk_count == -(-len(content) // 64)
    assert all(len(p) == 64 for p in pieces[:-1])
    assert meta.id == blob_id
    assert meta.filename == "resume_1_cv.pdf"
    assert meta.content_type == "application/pdf"
    assert meta.length == len(content)
    assert meta.sha256 == hashlib.sha256(content).hexdigest()


def test_download_stream_is_single_pass(blob_store):
    blob_id = blob_store.put("a.pdf", "application/pdf", [b"x" * 200])
    _, chunks = blob_store.get(blob_id)

    assert b"".join(chunks) == b"x" * 200
    assert list(chunks) == []


def test_repeated_get_returns_same_content(blob_store):
    blob_id = blob_store.put("a.pdf", "application/pdf", [b"%PDF" * 50])

    first_meta, first = blob_store.get(blob_id)
    second_meta, second = blob_store.get(blob_id)

    assert first_meta == second_meta
    assert b"".join(first) == b"".join(second)


def test_get_unknown_id_raises_not_found(blob_store):
    with pytest.raises(NotFound):
        blob_store.get(uuid4())
    assert blob_store.find(uuid4()) is None


def test_put_failure_midway_leaves_no_visible_blob(blob_store):
    def flaky_stream():
        yield b"a" * 100
        raise OSError("connection reset by peer")

    with pytest.raises(StorageWriteError):
        blob_store.put("broken.pdf", "application/pdf", flaky_stream())

    assert blob_store.count() == 0


def test_put_rejects_empty_stream(blob_store):
    with pytest.raises(StorageWriteError):
        blob_store.put("empty.pdf", "application/pdf", [b""])
    assert blob_store.count() == 0


def test_missing_chunk_raises_storage_read_error(blob_store, database, caplog):
    blob_id = blob_store.put("a.pdf", "application/pdf", [b"y" * 150])
    with database.session_scope() as session:
        session.execute(
            delete(BlobChunk).where(BlobChunk.file_id == blob_id, BlobChunk.n == 1)
        )
        session.commit()

    _, chunks = blob_store.get(blob_id)
    assert next(chunks) == b"y" * 64
    with caplog.at_level(logging.ERROR, logger="intake.services.blob_store"):
        with pytest.raises(StorageReadError):
            next(chunks)

    assert f"Blob chunk missing id={blob_id} chunk=1" in caplog.text


def test_buckets_are_isolated(database):
    resumes = BlobStore(database, bucket="resumes", chunk_size=64)
    other = BlobStore(database, bucket="other", chunk_size=64)

    blob_id = resumes.put("a.pdf", "application/pdf", [b"data"])

    assert other.find(blob_id) is None
    assert resumes.find(blob_id) is not None


def test_unreachable_database_raises_storage_write_error_and_resets(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'missing-dir' / 'store.db'}")
    store = BlobStore(database)

    with pytest.raises(StorageWriteError):
        store.put("a.pdf", "application/pdf", [b"data"])

    assert database.connected is False


def test_chunk_size_must_be_positive(database):
    with pytest.raises(ValueError):
        BlobStore(database, chunk_size=0)
