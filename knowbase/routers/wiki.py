from fastapi import APIRouter, Depends

from knowbase.config import Settings
from knowbase.dependencies import get_settings, get_store, require_session
from knowbase.models.page import Page
from knowbase.models.wiki_response import WikiResponse
from knowbase.services.store import PageStore, normalize_path_key

router = APIRouter(tags=["Wiki"], dependencies=[Depends(require_session)])


@router.get("/w", response_model=WikiResponse, summary="Show the wiki start page")
@router.get("/w/{path:path}", response_model=WikiResponse, summary="Show a wiki page")
async def wiki_page(
    path: str = "",
    settings: Settings = Depends(get_settings),
    store: PageStore = Depends(get_store),
) -> WikiResponse:
    """Return the page stored at *path*, or an empty page when none exists."""
    key = normalize_path_key(path)
    page = await store.get(key)
    return WikiResponse(
        name=settings.name,
        title="Wiki",
        path=key,
        found=page is not None,
        page=page or Page(),
    )
