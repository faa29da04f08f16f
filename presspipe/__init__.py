"""Headless CMS publishing pipeline.

Turns author submissions (title, body, category, tags, status, embedded
media) into posts on a WordPress-compatible REST API, resolving taxonomy
terms, embedding media markup and verifying what was written.
"""

__version__ = "0.1.0"
__description__ = "Publishing pipeline for WordPress-compatible headless CMSs"

# Re-export main classes for convenience
from .auth import BearerToken
from .client import WordPressClient
from .config import ConfigManager, Profile
from .render import OutputFormatter
from .models import MediaReference, PostDraft, PublishResult
from .pipeline import (
    MediaEmbedder,
    StatusMapper,
    TermResolver,
    PostSubmitter,
    PostVerifier,
    PublishingPipeline,
)
from .exceptions import (
    PressPipeError,
    ConfigError,
    AuthenticationError,
    TokenExpiredError,
    ValidationError,
    APIError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    RateLimitError,
    UpstreamConnectionError,
    MalformedResponseError,
    UpstreamRejection,
    UnknownStatusError,
)

__all__ = [
    "__version__",
    "__description__",
    "BearerToken",
    "WordPressClient",
    "ConfigManager",
    "Profile",
    "OutputFormatter",
    "MediaReference",
    "PostDraft",
    "PublishResult",
    "MediaEmbedder",
    "StatusMapper",
    "TermResolver",
    "PostSubmitter",
    "PostVerifier",
    "PublishingPipeline",
    "PressPipeError",
    "ConfigError",
    "AuthenticationError",
    "TokenExpiredError",
    "ValidationError",
    "APIError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "RateLimitError",
    "UpstreamConnectionError",
    "MalformedResponseError",
    "UpstreamRejection",
    "UnknownStatusError",
]
