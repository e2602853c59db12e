"""Detail and listing routes for every entity kind."""

# pylint: disable=duplicate-code

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from config import config
from entity_kinds import KINDS, EntityKind, derive_slug
from resolver import INCOMPLETE, TIER_COMPOSITE_ID, resolve
from slug_index import get_slug_index
from store import DocumentStore, StoreUnavailable, get_store
from utils.logging import configure_logger
from utils.template_helpers import create_templates, wants_html

router = APIRouter()
templates = create_templates()

LOG_FILE = Path(config.LOG_DIR) / "entities.log"
logger = configure_logger(__name__, LOG_FILE)

RETRY_MESSAGE = "We could not load this page right now. Please try again shortly."


class EntityResponse(BaseModel):
    """A resolved entity plus how it was found."""

    kind: str
    collection: str
    tier: str
    slug: str
    path: str
    entity: Dict[str, Any]


class ListingResponse(BaseModel):
    kind: str
    total: int = Field(0, ge=0)
    items: List[Dict[str, Any]] = Field(default_factory=list)


def _link(kind: EntityKind, entity: Dict[str, Any]) -> tuple[str, str]:
    slug = derive_slug(entity, kind)
    return slug, kind.detail_path(quote(slug or str(entity["id"]), safe=""))


def _unavailable(request: Request, kind: EntityKind, status_code: int, message: str):
    """Render the not-found page for browsers, raise a JSON error otherwise."""

    retry = status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    if wants_html(request):
        return templates.TemplateResponse(
            request,
            "not_found.html",
            {
                "title": f"{kind.label} not found" if not retry else "Please retry",
                "message": message,
                "retry": retry,
                "listing": kind.listing_path,
                "listing_label": kind.listing_path.strip("/"),
            },
            status_code=status_code,
        )
    raise HTTPException(
        status_code=status_code,
        detail={"message": message, "listing": kind.listing_path, "retry": retry},
    )


def _detail_endpoint(kind: EntityKind):
    async def get_entity(
        identifier: str,
        request: Request,
        store: DocumentStore = Depends(get_store),
    ):
        logger.info("GET %s/%s", kind.detail_prefix, identifier)
        if identifier == kind.listing_path.strip("/"):
            return RedirectResponse(kind.listing_path, status_code=307)
        try:
            result = await resolve(store, kind, identifier, index=get_slug_index())
        except StoreUnavailable as exc:
            logger.error("Resolving %s %r failed: %s", kind.name, identifier, exc)
            return _unavailable(
                request, kind, status.HTTP_503_SERVICE_UNAVAILABLE, RETRY_MESSAGE
            )

        if result.status == INCOMPLETE:
            logger.warning(
                "%s %r not found with %d tier errors",
                kind.name,
                identifier,
                len(result.errors),
            )
            return _unavailable(
                request, kind, status.HTTP_503_SERVICE_UNAVAILABLE, RETRY_MESSAGE
            )
        if not result.found:
            return _unavailable(
                request,
                kind,
                status.HTTP_404_NOT_FOUND,
                f"{kind.label} not found.",
            )

        slug, path = _link(kind, result.entity)
        if (
            kind.redirect_to_canonical
            and result.tier != TIER_COMPOSITE_ID
            and slug
            and slug != identifier
        ):
            logger.info("Redirecting %s %r to %s", kind.name, identifier, path)
            return RedirectResponse(path, status_code=307)

        return EntityResponse(
            kind=kind.name,
            collection=result.collection,
            tier=result.tier,
            slug=slug,
            path=path,
            entity=result.entity,
        )

    get_entity.__name__ = f"get_{kind.name}_detail"
    return get_entity


def _listing_endpoint(kind: EntityKind):
    async def list_entities(
        limit: int = Query(config.LISTING_PAGE_SIZE, ge=1, le=500),
        store: DocumentStore = Depends(get_store),
    ) -> ListingResponse:
        logger.info("GET %s limit=%d", kind.listing_path, limit)
        try:
            documents = await store.get_all(kind.primary_collection, limit=limit)
        except StoreUnavailable as exc:
            logger.error("Listing %s failed: %s", kind.name, exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"message": RETRY_MESSAGE, "retry": True},
            ) from exc
        items = []
        for document in documents:
            slug, path = _link(kind, document)
            items.append({**document, "slug": slug, "path": path})
        logger.info("Returning %d %s", len(items), kind.name)
        return ListingResponse(kind=kind.name, total=len(items), items=items)

    list_entities.__name__ = f"list_{kind.name}"
    return list_entities


for _kind in KINDS.values():
    router.add_api_route(
        _kind.listing_path,
        _listing_endpoint(_kind),
        methods=["GET"],
        response_model=ListingResponse,
        tags=[_kind.name],
    )
    router.add_api_route(
        f"{_kind.detail_prefix}/{{identifier}}",
        _detail_endpoint(_kind),
        methods=["GET"],
        tags=[_kind.name],
    )
