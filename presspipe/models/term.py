"""Taxonomy term models for categories and tags."""

from html import unescape
from typing import List

from pydantic import BaseModel, Field, field_validator


class TaxonomyTerm(BaseModel):
    """A category or tag as stored by the upstream CMS."""

    id: int
    name: str = ""
    slug: str = ""

    @field_validator("name")
    @classmethod
    def unescape_name(cls, v: str) -> str:
        """The upstream returns names HTML-encoded ("Arts &amp; Culture")."""
        return unescape(v)

    def matches(self, name: str) -> bool:
        """Case-insensitive exact name match."""
        return self.name.strip().casefold() == name.strip().casefold()


class TagResolution(BaseModel):
    """Outcome of a tag pass: resolved ids plus the names that were dropped."""

    ids: List[int] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.skipped)
