"""
Search Routes - Ticket/comment search and index administration.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from tickethub.config import get_settings
from tickethub.domains.search import SearchResultPage, SearchService
from tickethub.interfaces.api.deps import get_search_service

router = APIRouter()


class RebuildResponse(BaseModel):
    """Index rebuild response."""

    message: str
    tickets: int
    comments: int


def _split_labels(labels: str | None) -> list[str]:
    if not labels:
        return []
    return [label.strip() for label in labels.split(",") if label.strip()]


@router.get("", response_model=SearchResultPage)
async def search(
    query: str = Query(default="", description="Search query with optional DSL filters"),
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
    labels: str | None = Query(default=None, description="Comma-separated labels"),
    status: str | None = Query(default=None, description="open / closed / all"),
    assignee_id: int | None = Query(default=None, ge=0),
    creator_id: int | None = Query(default=None, ge=0),
    service: SearchService = Depends(get_search_service),
) -> SearchResultPage:
    """
    Search tickets and ticket comments.

    - **query**: Free text plus inline filters, e.g. `login label:bug status:open`
    - **limit** / **offset**: Pagination
    - **labels**, **status**, **assignee_id**, **creator_id**: Structured
      filters merged with the inline ones
    """
    limit = min(limit, get_settings().search_max_limit)
    return await service.search(
        query,
        limit=limit,
        offset=offset,
        labels=_split_labels(labels),
        status=status,
        assignee_id=assignee_id,
        creator_id=creator_id,
    )


@router.post("/rebuild-index", response_model=RebuildResponse)
async def rebuild_index(
    service: SearchService = Depends(get_search_service),
) -> RebuildResponse:
    """Rebuild every search index from the stored tickets and comments."""
    counts = await service.rebuild_index()
    return RebuildResponse(
        message="Search index rebuilt",
        tickets=counts["tickets"],
        comments=counts["comments"],
    )
