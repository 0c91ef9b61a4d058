from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from intake.core.config import SchemaVariant


class SubmissionKind(str, Enum):
    CONTACT = "contact"
    INTERNSHIP = "internship"
    GENERAL = "general"


class AttachmentPolicy(str, Enum):
    FORBIDDEN = "forbidden"
    OPTIONAL = "optional"
    REQUIRED = "required"


class StoredRecord(BaseModel):
    """Fields every stored submission exposes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: int
    # Available to callers but left out of the serialized record.
    kind: SubmissionKind = Field(exclude=True)
    name: str
    email: str
    mobile: Optional[str] = None
    created_at: datetime
    resume_download_url: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands timestamps back without an offset; they are stored as UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ContactRecord(StoredRecord):
    subject: Optional[str] = None
    message: Optional[str] = None
    resume_file_id: Optional[UUID] = None
    resume_file_name: Optional[str] = None


class InternshipRecord(StoredRecord):
    last_name: str
    mobile: str
    resume_file_id: UUID
    resume_file_name: str


class GeneralRecord(StoredRecord):
    subject: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class KindRules:
    """Per-kind field set, required fields and attachment policy."""

    kind: SubmissionKind
    fields: Tuple[str, ...]
    required: Tuple[str, ...]
    attachment: AttachmentPolicy
    record_model: Type[StoredRecord]
    label: str

    def missing(self, values: Dict[str, Optional[str]]) -> List[str]:
        return [field for field in self.required if not values.get(field)]


KIND_RULES: Dict[SubmissionKind, KindRules] = {
    SubmissionKind.CONTACT: KindRules(
        kind=SubmissionKind.CONTACT,
        fields=("name", "mobile", "email", "subject", "message"),
        required=("name", "email"),
        attachment=AttachmentPolicy.OPTIONAL,
        record_model=ContactRecord,
        label="contact",
    ),
    SubmissionKind.INTERNSHIP: KindRules(
        kind=SubmissionKind.INTERNSHIP,
        fields=("name", "last_name", "mobile", "email"),
        required=("name", "last_name", "mobile", "email"),
        attachment=AttachmentPolicy.REQUIRED,
        record_model=InternshipRecord,
        label="internship application",
    ),
    SubmissionKind.GENERAL: KindRules(
        kind=SubmissionKind.GENERAL,
        fields=("name", "mobile", "email", "subject", "message"),
        required=("name", "email"),
        attachment=AttachmentPolicy.FORBIDDEN,
        record_model=GeneralRecord,
        label="message",
    ),
}

VARIANT_KINDS: Dict[SchemaVariant, Tuple[SubmissionKind, ...]] = {
    SchemaVariant.COMBINED: (SubmissionKind.CONTACT,),
    SchemaVariant.SPLIT: (SubmissionKind.INTERNSHIP, SubmissionKind.GENERAL),
}


def external_name(field: str) -> str:
    """Form/JSON name of a column, e.g. ``last_name`` -> ``lastName``."""
    return to_camel(field)


class SubmissionResponse(BaseModel):
    success: bool = True
    message: str
    data: Dict[str, Any]


class SubmissionListResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
