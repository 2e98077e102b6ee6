from pydantic import BaseModel


class Page(BaseModel):
    """One rendered wiki page, stored as JSON under its path."""

    content: str = ""  # rendered HTML body
    index: str = ""  # rendered HTML of the index region, empty when absent
    preview: str = ""  # raw markdown excerpt of the body source
