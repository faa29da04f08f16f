"""Read-after-write verification of freshly created posts."""

import logging

from ..client import WordPressClient
from ..exceptions import APIError
from ..models.post import UpstreamPost
from ..models.result import VerificationOutcome

logger = logging.getLogger(__name__)

MISSING_ID_WARNING = "Post may not have been created properly"
EMPTY_TITLE_WARNING = "Post title is empty after verification"


class PostVerifier:
    """Re-fetches a created post and prefers the fresher copy.

    The upstream has been seen to accept a create and answer with a partial
    body (no title). Verification never raises: problems become warnings.
    """

    def __init__(self, client: WordPressClient) -> None:
        self.client = client

    def verify(self, created: UpstreamPost) -> VerificationOutcome:
        """Verify a created post.

        Args:
            created: Post as returned by the create call

        Returns:
            The post to report, plus an optional warning
        """
        if not created.has_id:
            logger.warning("Create response carried no post id; skipping verification")
            return VerificationOutcome(post=created, warning=MISSING_ID_WARNING)

        try:
            fetched = UpstreamPost.from_response(self.client.get_post(created.id))
        except APIError as e:
            logger.warning("Could not re-fetch post %s for verification: %s", created.id, e.message)
            return VerificationOutcome(post=created, warning=f"Post verification failed: {e.message}")

        if created.has_title:
            return VerificationOutcome(post=created)

        if fetched.has_title:
            logger.info("Post %s title missing from create response; using fetched copy", created.id)
            return VerificationOutcome(post=fetched, reconciled=True)

        logger.warning("Post %s has no title upstream even after re-fetch", created.id)
        return VerificationOutcome(post=created, warning=EMPTY_TITLE_WARNING)
