"""Intra-wiki link rewriting over a parsed markdown tree."""

from typing import Callable

from markdown_it.tree import SyntaxTreeNode

MOUNT_PREFIX = "/w"


def is_root_relative(href: str) -> bool:
    """Return True for destinations such as ``/docs/setup.md``.

    Protocol-relative URLs (``//host/path``) are not root-relative.
    """
    return href.startswith("/") and not href.startswith("//")


def visit(node: SyntaxTreeNode, callback: Callable[[SyntaxTreeNode], None]) -> None:
    """Call *callback* on *node* and then on each descendant, in pre-order.

    The parser caps nesting depth, so recursion stays shallow.
    """
    callback(node)
    for child in node.children:
        visit(child, callback)


def rewrite_links(root: SyntaxTreeNode, mount_prefix: str = MOUNT_PREFIX) -> None:
    """Prefix every root-relative link under *root* with *mount_prefix*, in place.

    ``/foo/bar`` becomes ``/w/foo/bar``.  Relative links, links with a scheme
    and anchor-only links are left untouched.
    """

    def _rewrite(node: SyntaxTreeNode) -> None:
        if node.type != "link":
            return
        href = node.attrGet("href")
        if isinstance(href, str) and is_root_relative(href):
            # attrs is the opening token's own dict
            node.attrs["href"] = mount_prefix.rstrip("/") + href

    visit(root, _rewrite)
