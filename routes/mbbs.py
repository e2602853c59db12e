"""Routes listing MBBS colleges by city or country."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from config import config
from entity_kinds import derive_slug, get_kind
from mbbs import COUNTRY, college_name, filter_mbbs_colleges, parse_location_slug
from routes.entities import RETRY_MESSAGE
from store import DocumentStore, StoreUnavailable, get_store
from utils.logging import configure_logger
from utils.slugs import title_case_slug

router = APIRouter(prefix="/course/mbbs", tags=["mbbs"])

LOG_FILE = Path(config.LOG_DIR) / "mbbs_api.log"
logger = configure_logger(__name__, LOG_FILE)

COLLEGES = get_kind("colleges")


class MbbsListingResponse(BaseModel):
    """Colleges matching one city or country."""

    location_type: str
    location: str
    total: int = Field(0, ge=0)
    colleges: List[Dict[str, Any]] = Field(default_factory=list)


def _first(college: Mapping[str, Any], *fields: str) -> Any:
    for field in fields:
        current: Any = college
        for part in field.split("."):
            current = current.get(part) if isinstance(current, Mapping) else None
        if current:
            return current
    return None


def summarize_college(college: Mapping[str, Any]) -> Dict[str, Any]:
    """Card fields for an MBBS listing row."""

    listing = {
        "id": college["id"],
        "name": college_name(college),
        "city": _first(college, "city", "cityName", "location.city"),
        "state": _first(college, "state", "location.state"),
        "country": _first(college, "country", "countryName", "location.country"),
        "approval": _first(college, "approval", "approvedBy"),
        "streams": college.get("streams") or [],
        "totalFees": _first(college, "totalFees", "fee", "fees"),
        "rating": _first(college, "rating", "overallRating"),
        "logoUrl": _first(college, "logoUrl", "logo", "image"),
        "website": _first(college, "website", "url"),
    }
    slug = derive_slug(college, COLLEGES)
    listing["path"] = COLLEGES.detail_path(slug or college["id"])
    return listing


async def _listing(
    store: DocumentStore, location_type: str, location: str
) -> MbbsListingResponse:
    try:
        colleges = await filter_mbbs_colleges(store, location_type, location)
    except StoreUnavailable as exc:
        logger.error("MBBS %s=%s lookup failed: %s", location_type, location, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": RETRY_MESSAGE, "retry": True},
        ) from exc
    logger.info("Returning %d MBBS colleges for %s=%s", len(colleges), location_type, location)
    return MbbsListingResponse(
        location_type=location_type,
        location=location,
        total=len(colleges),
        colleges=[summarize_college(college) for college in colleges],
    )


@router.get("/abroad/{country}", response_model=MbbsListingResponse)
async def mbbs_by_country(
    country: str, store: DocumentStore = Depends(get_store)
) -> MbbsListingResponse:
    """Return MBBS colleges in a country, e.g. ``/course/mbbs/abroad/bangladesh``."""
    logger.info("GET /course/mbbs/abroad/%s", country)
    _, location = parse_location_slug(f"abroad/{country}")
    return await _listing(store, COUNTRY, location or title_case_slug(country))


@router.get("/{slug:path}", response_model=MbbsListingResponse)
async def mbbs_by_location(
    slug: str, store: DocumentStore = Depends(get_store)
) -> MbbsListingResponse:
    """Return MBBS colleges for ``colleges-{city}`` or ``abroad/{country}`` paths."""
    logger.info("GET /course/mbbs/%s", slug)
    location_type, location = parse_location_slug(slug)
    if not location:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "Location not found.", "listing": "/course/mbbs"},
        )
    return await _listing(store, location_type, location)
