"""Publishing pipeline components.

Leaf components (media embedding, status mapping, taxonomy resolution,
submission and verification) and the orchestrator that sequences them.
"""

from .media import MediaEmbedder
from .status import StatusMapper
from .terms import TermResolver
from .submitter import PostSubmitter
from .verifier import PostVerifier
from .orchestrator import PublishingPipeline

__all__ = [
    "MediaEmbedder",
    "StatusMapper",
    "TermResolver",
    "PostSubmitter",
    "PostVerifier",
    "PublishingPipeline",
]
