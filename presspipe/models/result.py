"""Result models returned by the verifier and the publishing pipeline."""

from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field

from .post import UpstreamPost


class VerificationOutcome(BaseModel):
    """What the post-write verification settled on."""

    post: UpstreamPost
    warning: Optional[str] = None
    reconciled: bool = False


class PublishResult(BaseModel):
    """Application-facing result of a create or update."""

    success: bool
    status_code: int
    post: Optional[UpstreamPost] = None
    message: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    notes: List[str] = Field(default_factory=list)
    skipped_tags: List[str] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Render the response body handed back to the UI.

        Optional members are only present when set.
        """
        response: Dict[str, Any] = {"success": self.success}
        if self.post is not None:
            response["post"] = self.post.to_dict()
        if self.message:
            response["message"] = self.message
        if self.warning:
            response["warning"] = self.warning
        if self.error:
            response["error"] = self.error
        if self.details:
            response["details"] = self.details
        if self.notes:
            response["notes"] = list(self.notes)
        if self.skipped_tags:
            response["skipped_tags"] = list(self.skipped_tags)
        return response
