"""
Submission endpoints.

Two routers are exposed and ``create_app`` mounts the one matching
``SCHEMA_VARIANT``:

- ``combined_router``: POST /api/contact, GET /api/contacts
- ``split_router``: POST /api/contact/internship, POST /api/contact/general,
  GET /api/contacts/internship, GET /api/contacts/general
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from intake.api.deps import get_submission_service
from intake.core.errors import InfrastructureError, ValidationError, error_body
from intake.schemas.submission import (
    KIND_RULES,
    SubmissionKind,
    SubmissionListResponse,
    SubmissionResponse,
    external_name,
)
from intake.services.submission_service import ResumeUpload, SubmissionService

logger = logging.getLogger(__name__)

combined_router = APIRouter()
split_router = APIRouter()


def _resume_upload(resume: Optional[UploadFile]) -> Optional[ResumeUpload]:
    # Browsers send an empty part with no filename when no file was picked.
    if resume is None or not resume.filename:
        return None
    return ResumeUpload(
        filename=resume.filename,
        content_type=resume.content_type,
        stream=resume.file,
    )


def _saved(message: str, record) -> SubmissionResponse:
    return SubmissionResponse(
        message=message,
        data=record.model_dump(by_alias=True, mode="json"),
    )


def _server_error(message: str, exc: Exception) -> JSONResponse:
    logger.error("%s: %s", message, exc)
    return JSONResponse(status_code=500, content=error_body(message, exc))


def _list(service: SubmissionService, kind: SubmissionKind, failure: str):
    try:
        records = service.list_records(kind)
    except InfrastructureError as exc:
        return _server_error(failure, exc)
    return SubmissionListResponse(
        data=[record.model_dump(by_alias=True, mode="json") for record in records]
    )


# =============================================================================
# Combined variant
# =============================================================================


@combined_router.post(
    "/contact",
    response_model=SubmissionResponse,
    summary="Submit contact form",
    description="Contact form with an optional PDF resume (max 5MB).",
)
def submit_contact(
    name: Optional[str] = Form(None),
    mobile: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    message: Optional[str] = Form(None),
    resume: Optional[UploadFile] = File(None),
    service: SubmissionService = Depends(get_submission_service),
):
    fields = {
        "name": name,
        "mobile": mobile,
        "email": email,
        "subject": subject,
        "message": message,
    }
    try:
        record = service.submit_with_attachment(
            SubmissionKind.CONTACT, fields, _resume_upload(resume)
        )
    except InfrastructureError as exc:
        return _server_error("Failed to save contact", exc)
    return _saved("Contact saved successfully!", record)


@combined_router.get(
    "/contacts",
    response_model=SubmissionListResponse,
    summary="List contact submissions, newest first",
)
def list_contacts(service: SubmissionService = Depends(get_submission_service)):
    return _list(service, SubmissionKind.CONTACT, "Failed to fetch contacts")


# =============================================================================
# Split variant
# =============================================================================


@split_router.post(
    "/contact/internship",
    response_model=SubmissionResponse,
    summary="Submit internship application",
    description="Internship application; a PDF resume (max 5MB) is mandatory.",
)
def submit_internship(
    name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None, alias="lastName"),
    mobile: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    resume: Optional[UploadFile] = File(None),
    service: SubmissionService = Depends(get_submission_service),
):
    fields = {
        "name": name,
        "last_name": last_name,
        "mobile": mobile,
        "email": email,
    }
    try:
        record = service.submit_with_attachment(
            SubmissionKind.INTERNSHIP, fields, _resume_upload(resume)
        )
    except InfrastructureError as exc:
        return _server_error("Failed to save internship application", exc)
    return _saved("Internship application saved successfully!", record)


async def _general_fields(
    request: Request,
) -> Tuple[Dict[str, Optional[str]], Optional[ResumeUpload]]:
    """Read the general contact fields, and any attached file, from the body.

    JSON, urlencoded and multipart bodies are accepted. A file part is passed
    on to the service, which rejects it for this kind.
    """
    wanted = {external_name(f): f for f in KIND_RULES[SubmissionKind.GENERAL].fields}
    content_type = request.headers.get("content-type", "")
    upload: Optional[ResumeUpload] = None

    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Request body is not valid JSON") from None
        if not isinstance(payload, dict):
            payload = {}
    else:
        payload = await request.form()
        for _, value in payload.multi_items():
            if isinstance(value, StarletteUploadFile) and value.filename:
                upload = _resume_upload(value)
                break

    fields: Dict[str, Optional[str]] = {}
    for key, column in wanted.items():
        value = payload.get(key)
        fields[column] = value if isinstance(value, str) else None
    return fields, upload


@split_router.post(
    "/contact/general",
    response_model=SubmissionResponse,
    summary="Submit general contact message",
    description="General contact message; accepts JSON or form bodies, no attachment.",
)
async def submit_general(
    request: Request,
    service: SubmissionService = Depends(get_submission_service),
):
    fields, upload = await _general_fields(request)
    try:
        record = await run_in_threadpool(
            service.submit_with_attachment, SubmissionKind.GENERAL, fields, upload
        )
    except InfrastructureError as exc:
        return _server_error("Failed to save message", exc)
    return _saved("Message saved successfully!", record)


@split_router.get(
    "/contacts/internship",
    response_model=SubmissionListResponse,
    summary="List internship applications, newest first",
)
def list_internship_contacts(
    service: SubmissionService = Depends(get_submission_service),
):
    return _list(
        service, SubmissionKind.INTERNSHIP, "Failed to fetch internship contacts"
    )


@split_router.get(
    "/contacts/general",
    response_model=SubmissionListResponse,
    summary="List general contact messages, newest first",
)
def list_general_contacts(
    service: SubmissionService = Depends(get_submission_service),
):
    return _list(service, SubmissionKind.GENERAL, "Failed to fetch general contacts")
