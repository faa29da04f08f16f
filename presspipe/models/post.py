"""Post models: the author's draft, the normalized payload and the upstream copy."""

from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Literal


class EditorialStatus(str, Enum):
    """Editorial workflow states accepted from authors."""
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISH = "publish"
    # Legacy alias still sent by older clients
    PUBLISHED = "published"


UpstreamStatus = Literal["draft", "pending", "publish"]


class MediaReference(BaseModel):
    """An already-uploaded media item to embed into a post body."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    kind: Literal["image", "video"] = Field(validation_alias=AliasChoices("kind", "type"))
    url: str
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("display_name", "displayName", "title"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the media URL is not blank."""
        v = v.strip()
        if not v:
            raise ValueError("Media URL cannot be empty")
        return v


class PostDraft(BaseModel):
    """Author-supplied submission, before normalization.

    Title and body are not checked here; the pipeline rejects blank ones with
    a ValidationError before any upstream call.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    body: str = Field(default="", validation_alias=AliasChoices("body", "content"))
    excerpt: Optional[str] = None
    category_slug: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("category_slug", "categorySlug", "category"),
    )
    tag_names: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("tag_names", "tagNames", "tags"),
    )
    status: Optional[EditorialStatus] = None
    media: List[MediaReference] = Field(
        default_factory=list,
        validation_alias=AliasChoices("media", "mediaRefs", "media_refs"),
    )

    @field_validator("title", "body", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Treat a missing title or body as empty text."""
        return "" if v is None else v

    @field_validator("tag_names", mode="before")
    @classmethod
    def split_tag_names(cls, v: Any) -> Any:
        """Accept the comma-separated string the editor form produces."""
        if v is None:
            return []
        if isinstance(v, str):
            return v.split(",")
        return v

    @field_validator("category_slug")
    @classmethod
    def normalize_category_slug(cls, v: Optional[str]) -> Optional[str]:
        """Blank slugs mean no category."""
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class NormalizedPost(BaseModel):
    """Fully resolved payload, ready for the upstream write call."""

    title: str
    body: str
    excerpt: str = ""
    status: Optional[UpstreamStatus] = None
    category_ids: List[int] = Field(default_factory=list, max_length=1)
    tag_ids: Optional[List[int]] = None

    @field_validator("tag_ids")
    @classmethod
    def validate_unique_tags(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        """Tag ids must be unique."""
        if v is not None and len(set(v)) != len(v):
            raise ValueError("Tag ids must be unique")
        return v


def _rendered(value: Any) -> Optional[str]:
    """Unwrap WordPress ``{"rendered": ...}`` fields; malformed values become None."""
    if isinstance(value, dict):
        value = value.get("rendered", value.get("raw"))
    if isinstance(value, str):
        return value
    return None


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class UpstreamPost(BaseModel):
    """The upstream CMS's copy of a post, as returned after a write or read."""

    id: Optional[int] = None
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    status: Optional[str] = None
    author: Optional[int] = None
    link: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    @field_validator("title", "content", "excerpt", mode="before")
    @classmethod
    def unwrap_rendered(cls, v: Any) -> Optional[str]:
        return _rendered(v)

    @field_validator("id", "author", mode="before")
    @classmethod
    def coerce_int(cls, v: Any) -> Optional[int]:
        return _as_int(v)

    @field_validator("status", "link", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @classmethod
    def from_response(cls, data: Any) -> "UpstreamPost":
        """Build a post from a raw upstream response body."""
        if not isinstance(data, dict):
            return cls()
        fields = {key: data.get(key) for key in ("id", "title", "content", "excerpt", "status", "author", "link")}
        return cls(raw=data, **fields)

    @property
    def has_id(self) -> bool:
        return bool(self.id)

    @property
    def has_title(self) -> bool:
        return bool(self.title and self.title.strip())

    def to_dict(self) -> Dict[str, Any]:
        """The upstream payload as received, or the parsed fields when there is none."""
        return dict(self.raw) if self.raw else self.model_dump()
