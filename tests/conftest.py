import io
import zipfile
from fnmatch import fnmatchcase
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from knowbase.config import Settings
from knowbase.dependencies import limiter
from knowbase.main import create_app
from knowbase.models.page import Page

ACCESS_CODE = "open-sesame"


class MemoryPageStore:
    """In-process stand-in for :class:`knowbase.services.store.PageStore`."""

    def __init__(self) -> None:
        self.pages: Dict[str, str] = {}
        self.writes: List[str] = []

    async def get(self, path: str) -> Optional[Page]:
        raw = self.pages.get(path)
        return Page.model_validate_json(raw) if raw is not None else None

    async def upsert(self, path: str, page: Page) -> None:
        self.writes.append(path)
        self.pages[path] = page.model_dump_json()

    async def scan_keys_and_values(self, pattern: str) -> List[Tuple[str, Page]]:
        return [
            (key, Page.model_validate_json(raw))
            for key, raw in self.pages.items()
            if fnmatchcase(key, pattern)
        ]

    async def close(self) -> None:
        pass


def make_zip(files: Dict[str, bytes]) -> bytes:
    """Build an in-memory zip archive from ``{name: data}``; names ending in / are directories."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            if name.endswith("/"):
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear the slowapi in-memory counter before every test."""
    limiter._storage.reset()
    yield


@pytest.fixture
def settings() -> Settings:
    return Settings(
        access_code=ACCESS_CODE,
        redis_url="redis://localhost:6379/0",
        secret_key="test-secret",
        name="Test Wiki",
    )


@pytest.fixture
def store() -> MemoryPageStore:
    return MemoryPageStore()


@pytest.fixture
def client(settings, store):
    with TestClient(create_app(settings, store=store)) as test_client:
        yield test_client


@pytest.fixture
def authed_client(client):
    resp = client.post("/login", data={"password": ACCESS_CODE})
    assert resp.status_code == 200
    return client
