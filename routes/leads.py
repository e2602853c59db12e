"""API routes for lead-capture forms."""

# pylint: disable=duplicate-code

from pathlib import Path
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from config import config
from leads import (
    AdmissionLead,
    CourseComment,
    add_course_comment,
    list_course_comments,
    submit_admission,
)
from routes.entities import RETRY_MESSAGE
from store import DocumentStore, StoreUnavailable, get_store
from utils.logging import configure_logger

router = APIRouter(tags=["leads"])

LOG_FILE = Path(config.LOG_DIR) / "leads_api.log"
logger = configure_logger(__name__, LOG_FILE)


def _store_failed(exc: StoreUnavailable) -> HTTPException:
    logger.error("Lead store operation failed: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"message": RETRY_MESSAGE, "retry": True},
    )


@router.post("/admissions", status_code=status.HTTP_201_CREATED)
async def create_admission(
    lead: AdmissionLead, store: DocumentStore = Depends(get_store)
) -> Dict[str, str]:
    """Record an admission enquiry."""
    logger.info("POST /admissions source=%s", lead.source)
    try:
        doc_id = await submit_admission(store, lead)
    except StoreUnavailable as exc:
        raise _store_failed(exc) from exc
    return {"id": doc_id}


@router.get("/course/{course_id}/comments")
async def get_comments(
    course_id: str, store: DocumentStore = Depends(get_store)
) -> List[Dict]:
    """Return comments for a course, newest first."""
    logger.info("GET /course/%s/comments", course_id)
    try:
        comments = await list_course_comments(store, course_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except StoreUnavailable as exc:
        raise _store_failed(exc) from exc
    logger.info("Returning %d comments", len(comments))
    return comments


@router.post("/course/{course_id}/comments", status_code=status.HTTP_201_CREATED)
async def post_comment(
    course_id: str,
    comment: CourseComment,
    store: DocumentStore = Depends(get_store),
) -> Dict[str, str]:
    """Append a comment to a course."""
    logger.info("POST /course/%s/comments", course_id)
    try:
        return await add_course_comment(store, course_id, comment)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except StoreUnavailable as exc:
        raise _store_failed(exc) from exc
