"""Page assembly: raw markdown in, stored :class:`Page` out."""

import logging

from markdown_it import MarkdownIt

from knowbase.config import Settings
from knowbase.models.page import Page
from knowbase.services.index_region import split_index_region
from knowbase.services.links import MOUNT_PREFIX, rewrite_links
from knowbase.services.markdown import get_markdown, parse_document, render_document
from knowbase.services.preview import PREVIEW_BYTES, extract_preview
from knowbase.services.store import PageStore

logger = logging.getLogger(__name__)


def render_markdown(source: str, md: MarkdownIt, mount_prefix: str = MOUNT_PREFIX) -> str:
    """Parse *source*, rewrite its root-relative links and render it to HTML."""
    document = parse_document(source, md)
    rewrite_links(document.root, mount_prefix)
    return render_document(document, md)


def build_page(
    source: str,
    mount_prefix: str = MOUNT_PREFIX,
    preview_bytes: int = PREVIEW_BYTES,
    allow_raw_html: bool = False,
) -> Page:
    """Build the :class:`Page` for markdown *source*.

    The index region, when present, is rendered on its own, without link
    rewriting, and cut out of the source before the preview is taken and the
    body is rendered.  The result depends only on the arguments.
    """
    md = get_markdown(allow_raw_html)

    inner, body = split_index_region(source)
    index_html = render_document(parse_document(inner, md), md) if inner is not None else ""

    return Page(
        content=render_markdown(body, md, mount_prefix),
        index=index_html,
        preview=extract_preview(body, preview_bytes),
    )


async def assemble(store: PageStore, path: str, raw_markdown: str, settings: Settings) -> Page:
    """Build the page for *raw_markdown* and store it at *path*.

    Exactly one store write is made, after the page is fully built, and it
    replaces whatever was stored at *path* before.

    Raises:
        StoreUnavailable: if the page store cannot be reached.
    """
    page = build_page(
        raw_markdown,
        mount_prefix=settings.mount_prefix,
        preview_bytes=settings.preview_bytes,
        allow_raw_html=settings.allow_raw_html,
    )
    await store.upsert(path, page)
    logger.info("Page stored", extra={"path": path, "bytes": len(page.content)})
    return page
