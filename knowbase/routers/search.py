from fastapi import APIRouter, Depends, Query

from knowbase.config import Settings
from knowbase.dependencies import get_settings, get_store, require_session
from knowbase.models.search_response import SearchResponse
from knowbase.services.search import search
from knowbase.services.store import PageStore

router = APIRouter(tags=["Search"], dependencies=[Depends(require_session)])


@router.get("/search", response_model=SearchResponse, summary="Search pages by title")
async def search_pages(
    q: str = Query(default="", max_length=200, description="Text to look for in page paths."),
    settings: Settings = Depends(get_settings),
    store: PageStore = Depends(get_store),
) -> SearchResponse:
    """Return every page whose path contains *q*, best title match first."""
    results = await search(store, q, mount_prefix=settings.mount_prefix)
    return SearchResponse(query=q, results=results)
