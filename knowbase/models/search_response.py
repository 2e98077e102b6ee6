from typing import List

from pydantic import BaseModel


class SearchResult(BaseModel):
    title: str
    url: str
    preview: str


class SearchResponse(BaseModel):
    query: str
    results: List[SearchResult]
