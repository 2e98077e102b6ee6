"""Tests for knowbase.services.search."""

import asyncio
from fnmatch import fnmatchcase
from unittest.mock import AsyncMock

import fakeredis
import pytest

from knowbase.errors import StoreUnavailable
from knowbase.models.page import Page
from knowbase.models.search_response import SearchResult
from knowbase.services.search import build_pattern, rank_results, search, title_from_key
from knowbase.services.store import PageStore


def _store_pages(store, *keys):
    for key in keys:
        asyncio.run(store.upsert(key, Page(preview=f"preview of {key}")))


class TestTitleFromKey:
    def test_last_segment_without_suffix(self):
        assert title_from_key("docs/setup.md") == "setup"

    def test_dashes_become_spaces(self):
        assert title_from_key("docs/setup-advanced.md") == "setup advanced"

    def test_key_without_separator(self):
        assert title_from_key("readme.md") == "readme"

    def test_only_one_suffix_stripped(self):
        assert title_from_key("a/notes.md.md") == "notes.md"

    def test_no_suffix(self):
        assert title_from_key("a/b/plain-text") == "plain text"


class TestBuildPattern:
    def test_letters_match_either_case(self):
        pattern = build_pattern("Setup")
        assert pattern == "*[sS][eE][tT][uU][pP]*"
        assert fnmatchcase("docs/SETUP.md", pattern)
        assert fnmatchcase("docs/setup-advanced.md", pattern)
        assert not fnmatchcase("docs/install.md", pattern)

    def test_non_letters_kept(self):
        assert build_pattern("a-1/") == "*[aA]-1/*"

    def test_glob_metacharacters_escaped(self):
        assert build_pattern("a*?") == "*[aA]\\*\\?*"
        assert build_pattern("[x]") == "*\\[[xX]\\]*"

    def test_empty_query_matches_everything(self):
        assert build_pattern("") == "**"

    def test_cased_non_ascii_letter_becomes_wildcard(self):
        assert build_pattern("é") == "***"
        assert build_pattern("Café") == "*[cC][aA][fF]**"

    def test_uncased_non_ascii_kept(self):
        assert build_pattern("日記") == "*日記*"


class TestRankResults:
    def test_best_title_first(self):
        results = [
            SearchResult(title="setup advanced", url="/w/a", preview=""),
            SearchResult(title="setup", url="/w/b", preview=""),
        ]
        ranked = rank_results(results, "setup")
        assert [r.title for r in ranked] == ["setup", "setup advanced"]

    def test_ties_keep_scan_order(self):
        results = [
            SearchResult(title="same", url="/w/first", preview=""),
            SearchResult(title="same", url="/w/second", preview=""),
            SearchResult(title="same", url="/w/third", preview=""),
        ]
        assert [r.url for r in rank_results(results, "same")] == ["/w/first", "/w/second", "/w/third"]

    def test_similarity_uses_query_as_given(self):
        results = [
            SearchResult(title="setup", url="/w/lower", preview=""),
            SearchResult(title="Setup", url="/w/upper", preview=""),
        ]
        ranked = rank_results(results, "Setup")
        assert ranked[0].url == "/w/upper"


class TestSearch:
    def test_finds_and_ranks(self, store):
        _store_pages(store, "docs/setup-advanced.md", "docs/setup.md", "docs/other.md")
        results = asyncio.run(search(store, "setup"))

        assert [r.title for r in results] == ["setup", "setup advanced"]
        assert results[0].url == "/w/docs/setup.md"
        assert results[0].preview == "preview of docs/setup.md"

    def test_query_is_lower_cased_for_matching(self, store):
        _store_pages(store, "docs/setup.md")
        results = asyncio.run(search(store, "SETUP"))
        assert [r.url for r in results] == ["/w/docs/setup.md"]

    def test_keys_matched_regardless_of_case(self, store):
        _store_pages(store, "Guides/Getting-Started.md")
        results = asyncio.run(search(store, "getting"))
        assert [r.title for r in results] == ["Getting Started"]

    def test_matches_directory_part_of_key(self, store):
        _store_pages(store, "recipes/soup.md", "notes/soup.md")
        results = asyncio.run(search(store, "recipes"))
        assert [r.url for r in results] == ["/w/recipes/soup.md"]

    def test_no_matches(self, store):
        _store_pages(store, "docs/setup.md")
        assert asyncio.run(search(store, "nothing")) == []

    def test_no_result_cap(self, store):
        _store_pages(store, *[f"notes/page-{i}.md" for i in range(60)])
        assert len(asyncio.run(search(store, "page"))) == 60

    def test_custom_mount_prefix(self, store):
        _store_pages(store, "a.md")
        results = asyncio.run(search(store, "a", mount_prefix="/wiki"))
        assert results[0].url == "/wiki/a.md"

    def test_store_failure_propagates(self):
        store = AsyncMock()
        store.scan_keys_and_values.side_effect = StoreUnavailable("down")
        with pytest.raises(StoreUnavailable):
            asyncio.run(search(store, "x"))


def _search_redis(keys, query):
    """Store *keys* in a fresh fakeredis-backed PageStore and search it for *query*."""

    async def runner():
        client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
        store = PageStore(client)
        try:
            for key in keys:
                await store.upsert(key, Page(preview=f"preview of {key}"))
            return await search(store, query)
        finally:
            await store.close()

    return asyncio.run(runner())


class TestSearchRedisStore:
    def test_ascii_query_any_case(self):
        results = _search_redis(["docs/Setup.md", "docs/other.md"], "SETUP")
        assert [r.url for r in results] == ["/w/docs/Setup.md"]

    def test_non_ascii_query_matches_only_containing_keys(self):
        results = _search_redis(["notes/über.md", "notes/café.md"], "é")
        assert [r.url for r in results] == ["/w/notes/café.md"]

    def test_non_ascii_key_in_other_case(self):
        results = _search_redis(["notes/CAFÉ.md", "notes/cafe.md"], "café")
        assert [r.url for r in results] == ["/w/notes/CAFÉ.md"]

    def test_glob_metacharacters_are_literal(self):
        results = _search_redis(["odd*name.md", "oddname.md"], "d*")
        assert [r.url for r in results] == ["/w/odd*name.md"]

    def test_question_mark_is_literal(self):
        results = _search_redis(["why?.md", "whys.md"], "y?")
        assert [r.url for r in results] == ["/w/why?.md"]
