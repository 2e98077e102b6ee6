from typing import List

from pydantic import BaseModel


class SkippedEntry(BaseModel):
    path: str
    reason: str


class UploadResponse(BaseModel):
    message: str
    pages: List[str]
    """Paths of the pages written, in archive order."""
    skipped: List[SkippedEntry]
