import logging
from typing import Iterator
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from intake.api.deps import get_submission_service
from intake.core.errors import InfrastructureError, InvalidId, NotFound
from intake.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter()


def content_disposition(filename: str, disposition: str = "inline") -> str:
    """Build a Content-Disposition value that survives non-ASCII filenames."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    fallback = fallback.replace("\\", "_").replace("\r", "").replace("\n", "")
    value = f'{disposition}; filename="{fallback}"'
    if fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename)}"
    return value


def logged_stream(resume_id: str, chunks: Iterator[bytes]) -> Iterator[bytes]:
    """Pass ``chunks`` through, logging a read failure after headers were sent.

    At that point the status is already 200; the client only sees a body
    shorter than ``Content-Length``.
    """
    sent = 0
    try:
        for chunk in chunks:
            sent += len(chunk)
            yield chunk
    except InfrastructureError as exc:
        logger.error(
            "Download truncated id=%s bytes_sent=%s error=%s", resume_id, sent, exc
        )
        raise


@router.get(
    "/{resume_id}",
    summary="Download a stored resume",
    description="Streams the stored PDF inline; 400 for a malformed id, 404 when absent.",
    responses={
        200: {"content": {"application/pdf": {}}},
        400: {"description": "Invalid resume ID"},
        404: {"description": "Resume not found"},
    },
)
def download_resume(
    resume_id: str,
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        meta, chunks = service.fetch_resume(resume_id)
    except InvalidId:
        return JSONResponse(status_code=400, content={"error": "Invalid resume ID"})
    except NotFound:
        return JSONResponse(status_code=404, content={"error": "Resume not found"})
    except InfrastructureError as exc:
        logger.error("Download error id=%s error=%s", resume_id, exc)
        return JSONResponse(status_code=500, content={"error": "Error downloading file"})

    return StreamingResponse(
        logged_stream(resume_id, chunks),
        media_type=meta.content_type,
        headers={
            "Content-Disposition": content_disposition(meta.filename),
            "Content-Length": str(meta.length),
        },
    )
