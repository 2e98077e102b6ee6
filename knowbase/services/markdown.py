"""Markdown engine configuration, parsing and HTML rendering.

Wraps ``markdown-it-py`` with a fixed extension set: strikethrough, tables,
autolinking, task lists, superscript, header ids, footnotes and description
lists.  Soft line breaks render as ``<br />``.  Raw HTML is escaped unless
``allow_raw_html`` is set, in which case the GFM tag filter is applied to
every raw HTML token.
"""

import re
from functools import lru_cache
from typing import Any, NamedTuple, Sequence

from markdown_it import MarkdownIt
from markdown_it.token import Token
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.superscript import superscript_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from knowbase.errors import InternalRenderDefect

# Tags the GFM "tagfilter" extension neutralises inside raw HTML
_FILTERED_TAGS = (
    "title",
    "textarea",
    "style",
    "xmp",
    "iframe",
    "noembed",
    "noframes",
    "script",
    "plaintext",
)
_TAGFILTER_RE = re.compile(
    r"<(/?(?:%s)(?=[\s/>]|$))" % "|".join(_FILTERED_TAGS), re.IGNORECASE
)


class Document(NamedTuple):
    """A parsed markdown document: the syntax tree plus the parser env."""

    root: SyntaxTreeNode
    env: dict


def tagfilter_plugin(md: MarkdownIt) -> None:
    """Escape the opening ``<`` of disallowed tags inside raw HTML tokens."""
    md.add_render_rule("html_block", _render_filtered_html)
    md.add_render_rule("html_inline", _render_filtered_html)


def _render_filtered_html(
    self: Any, tokens: Sequence[Token], idx: int, options: Any, env: dict
) -> str:
    return _TAGFILTER_RE.sub(r"&lt;\1", tokens[idx].content)


def build_markdown(allow_raw_html: bool = False) -> MarkdownIt:
    """Return a new :class:`MarkdownIt` with the wiki's extension set."""
    md = MarkdownIt(
        "commonmark",
        {"html": allow_raw_html, "breaks": True, "linkify": True, "typographer": False},
    )
    md.enable(["table", "strikethrough", "linkify"])
    md.use(tasklists_plugin)
    md.use(footnote_plugin)
    md.use(deflist_plugin)
    md.use(anchors_plugin, min_level=1, max_level=6)
    md.use(superscript_plugin)
    md.use(tagfilter_plugin)
    return md


@lru_cache(maxsize=2)
def get_markdown(allow_raw_html: bool = False) -> MarkdownIt:
    """Return the shared, configured parser for *allow_raw_html*.

    The instance holds no per-document state; every parse gets its own
    token list and env.
    """
    return build_markdown(allow_raw_html)


def parse_document(source: str, md: MarkdownIt) -> Document:
    """Parse *source* into a :class:`Document`.

    The grammar is permissive: any string produces some tree.
    """
    env: dict = {}
    tokens = md.parse(source, env)
    return Document(SyntaxTreeNode(tokens), env)


def render_document(document: Document, md: MarkdownIt) -> str:
    """Serialize *document* back to HTML.

    Raises:
        InternalRenderDefect: if the rendered HTML is not valid UTF-8.
    """
    html = md.renderer.render(document.root.to_tokens(), md.options, document.env)
    try:
        html.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InternalRenderDefect(f"Renderer produced invalid UTF-8: {exc}") from exc
    return html
