import logging

import pytest

from intake.api.routes.resume import content_disposition, logged_stream
from intake.core.errors import StorageReadError


def test_logged_stream_passes_chunks_through():
    assert list(logged_stream("abc", iter([b"ab", b"cd"]))) == [b"ab", b"cd"]


def test_logged_stream_logs_truncated_download(caplog):
    def failing_chunks():
        yield b"x" * 10
        raise StorageReadError("Chunk 1 of blob abc is missing")

    stream = logged_stream("abc", failing_chunks())

    with caplog.at_level(logging.ERROR, logger="intake.api.routes.resume"):
        assert next(stream) == b"x" * 10
        with pytest.raises(StorageReadError):
            next(stream)

    assert "Download truncated id=abc bytes_sent=10" in caplog.text


class TestContentDisposition:
    def test_ascii_name_is_quoted_inline(self):
        assert content_disposition("resume_1_cv.pdf") == 'inline; filename="resume_1_cv.pdf"'

    def test_non_ascii_name_gets_utf8_variant(self):
        value = content_disposition("résumé.pdf")
        assert value.startswith('inline; filename="r?sum?.pdf"')
        assert value.endswith("filename*=UTF-8''r%C3%A9sum%C3%A9.pdf")

    def test_quotes_and_newlines_are_neutralised(self):
        value = content_disposition('a"b\r\n.pdf')
        assert "\r" not in value and "\n" not in value
        assert 'filename="a\'b.pdf"' in value
