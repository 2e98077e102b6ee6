"""Exceptions raised by the content pipeline and the page store."""


class KnowbaseError(Exception):
    """Base class for all knowbase errors."""


class DecodeError(KnowbaseError, ValueError):
    """An uploaded markdown entry is not valid UTF-8."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: not valid UTF-8 ({reason})")
        self.path = path
        self.reason = reason


class StoreUnavailable(KnowbaseError, RuntimeError):
    """The page store backend could not be reached."""


class InternalRenderDefect(KnowbaseError, RuntimeError):
    """The renderer produced output that is not valid UTF-8."""
