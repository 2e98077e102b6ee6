"""Extraction of the optional ``+++INDEX+++`` sidebar region of a page."""

import re
from typing import NamedTuple, Optional

INDEX_START = "+++INDEX+++"
INDEX_END = "---INDEX---"

# First start/end pair, each delimiter on its own line, non-greedy body
_INDEX_RE = re.compile(
    r"^%s\n(.*?)\n%s$" % (re.escape(INDEX_START), re.escape(INDEX_END)),
    re.MULTILINE | re.DOTALL,
)


class IndexSplit(NamedTuple):
    inner: Optional[str]  # text between the delimiters, None when absent
    source: str  # the source with the whole delimited block removed


def split_index_region(source: str) -> IndexSplit:
    """Separate the first index region of *source* from the rest of it.

    Only the first delimited block is extracted.  Any later block stays in
    the returned source and is rendered as ordinary text.
    """
    match = _INDEX_RE.search(source)
    if match is None:
        return IndexSplit(None, source)
    return IndexSplit(match.group(1), source[: match.start()] + source[match.end() :])
