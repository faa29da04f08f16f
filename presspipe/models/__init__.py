"""Data models for the publishing pipeline.

This package contains Pydantic models for author submissions, taxonomy
terms, upstream posts and the results handed back to callers.
"""

from .post import (
    EditorialStatus,
    UpstreamStatus,
    MediaReference,
    PostDraft,
    NormalizedPost,
    UpstreamPost,
)
from .term import TaxonomyTerm, TagResolution
from .result import VerificationOutcome, PublishResult


__all__ = [
    # Submissions
    "EditorialStatus",
    "MediaReference",
    "PostDraft",

    # Upstream shapes
    "UpstreamStatus",
    "NormalizedPost",
    "UpstreamPost",
    "TaxonomyTerm",

    # Results
    "TagResolution",
    "VerificationOutcome",
    "PublishResult",
]
