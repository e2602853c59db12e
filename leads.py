"""Append-only lead capture: admission enquiries and course comments."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from config import config
from store import DocumentStore
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "leads.log"
logger = configure_logger(__name__, LOG_FILE)

ADMISSIONS_COLLECTION = "admissions"


class AdmissionLead(BaseModel):  # pylint: disable=too-few-public-methods
    """Enquiry submitted from the apply-now, counselling, study-abroad and college forms.

    Job and study-abroad forms send ``fullName`` instead of ``name``; either
    one is accepted, and so is ``mobile`` for ``phone``. Unknown keys are
    rejected; ``createdAt`` and ``status`` are always assigned on submit.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    fullName: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: str = Field(..., max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(
        ..., min_length=7, max_length=20, validation_alias=AliasChoices("phone", "mobile")
    )
    course: Optional[str] = Field(default=None, max_length=200)
    currentCourse: Optional[str] = Field(default=None, max_length=200)
    program: Optional[str] = Field(default=None, max_length=200)
    collegeId: Optional[str] = Field(default=None, max_length=200)
    collegeName: Optional[str] = Field(default=None, max_length=300)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    location: Optional[str] = Field(default=None, max_length=200)
    message: Optional[str] = Field(default=None, max_length=2000)
    query: Optional[str] = Field(default=None, max_length=2000)
    # job and internship applications
    experience: Optional[str] = Field(default=None, max_length=200)
    resume: Optional[str] = Field(default=None, max_length=2000)
    jobId: Optional[str] = Field(default=None, max_length=200)
    jobTitle: Optional[str] = Field(default=None, max_length=300)
    companyName: Optional[str] = Field(default=None, max_length=300)
    applicationType: Optional[str] = Field(default=None, max_length=50)
    formType: Optional[str] = Field(default=None, max_length=100)
    action: Optional[str] = Field(default=None, max_length=100)
    source: str = Field("website", max_length=100)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str) -> str:  # noqa: D401
        """Allow digits with the usual separators only."""

        cleaned = value.strip()
        digits = [ch for ch in cleaned if ch.isdigit()]
        if len(digits) < 7 or any(ch not in "0123456789+-() " for ch in cleaned):
            raise ValueError("phone must contain at least 7 digits")
        return cleaned

    @model_validator(mode="after")
    def require_a_name(self) -> "AdmissionLead":
        if not (self.name or "").strip() and not (self.fullName or "").strip():
            raise ValueError("name or fullName is required")
        return self


class CourseComment(BaseModel):  # pylint: disable=too-few-public-methods
    text: str = Field(..., min_length=1, max_length=2000)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def comments_collection(course_id: str) -> str:
    course_id = course_id.strip()
    if not course_id or "/" in course_id or course_id in {".", ".."}:
        raise ValueError("course id must be a single path segment")
    return f"courses/{course_id}/comments"


async def submit_admission(store: DocumentStore, lead: AdmissionLead) -> str:
    """Store an admission enquiry and return its id."""

    record = lead.model_dump(exclude_none=True)
    record["createdAt"] = _timestamp()
    record["status"] = "new"
    doc_id = await store.add(ADMISSIONS_COLLECTION, record)
    logger.info("Admission lead %s stored (source=%s)", doc_id, lead.source)
    return doc_id


async def add_course_comment(
    store: DocumentStore, course_id: str, comment: CourseComment
) -> Dict[str, str]:
    collection = comments_collection(course_id)
    record = {"text": comment.text.strip(), "createdAt": _timestamp()}
    doc_id = await store.add(collection, record)
    logger.info("Comment %s added to course %s", doc_id, course_id)
    return {"id": doc_id, **record}


async def list_course_comments(store: DocumentStore, course_id: str) -> List[Dict]:
    """Return comments for a course, newest first."""

    comments = await store.get_all(comments_collection(course_id))
    return sorted(comments, key=lambda item: str(item.get("createdAt", "")), reverse=True)
