"""Plain-text preview excerpts of markdown sources."""

PREVIEW_BYTES = 500


def _is_continuation_byte(byte: int) -> bool:
    return byte & 0xC0 == 0x80


def extract_preview(source: str, limit: int = PREVIEW_BYTES) -> str:
    """Return the first *limit* UTF-8 bytes of *source* as a string.

    When the cut falls inside a multi-byte character it moves forward to the
    next character boundary, so the excerpt may exceed *limit* by up to three
    bytes.  Markdown syntax is kept verbatim.
    """
    encoded = source.encode("utf-8")
    cut = min(len(encoded), limit)
    while cut < len(encoded) and _is_continuation_byte(encoded[cut]):
        cut += 1
    return encoded[:cut].decode("utf-8")
