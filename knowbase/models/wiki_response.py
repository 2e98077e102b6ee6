from pydantic import BaseModel

from knowbase.models.page import Page


class WikiResponse(BaseModel):
    name: str
    title: str
    path: str
    found: bool
    """False when no page is stored at *path* and the empty default is returned."""
    page: Page
