"""Composing the wire payload and issuing the upstream write."""

import logging
from typing import Any, Dict

from ..client import WordPressClient
from ..exceptions import APIError, MalformedResponseError, UpstreamConnectionError, UpstreamRejection
from ..models.post import NormalizedPost, UpstreamPost
from .media import EmbedMode

logger = logging.getLogger(__name__)


class PostSubmitter:
    """Sends normalized posts to the upstream CMS."""

    def __init__(self, client: WordPressClient) -> None:
        self.client = client

    def build_payload(self, post: NormalizedPost, mode: EmbedMode = "create") -> Dict[str, Any]:
        """Compose the upstream post payload.

        Creates always carry a status and both taxonomy arrays. Updates leave
        out whatever the author did not submit so the upstream keeps it.

        Args:
            post: Normalized post
            mode: "create" or "update"

        Returns:
            JSON-serializable payload
        """
        payload: Dict[str, Any] = {
            "title": post.title.strip(),
            "content": post.body.strip(),
            "excerpt": post.excerpt.strip(),
        }

        if mode == "create":
            payload["status"] = post.status or "draft"
            payload["categories"] = list(post.category_ids)
            payload["tags"] = list(post.tag_ids or [])
            return payload

        if post.status:
            payload["status"] = post.status
        if post.category_ids:
            payload["categories"] = list(post.category_ids)
        if post.tag_ids is not None:
            payload["tags"] = list(post.tag_ids)
        return payload

    def create(self, post: NormalizedPost) -> UpstreamPost:
        """Create a post upstream.

        Raises:
            UpstreamRejection: If the upstream answers with a non-2xx status
            UpstreamConnectionError: If the upstream cannot be reached
        """
        payload = self.build_payload(post, "create")
        logger.debug(
            "Creating post: title=%r status=%s categories=%s tags=%s",
            payload["title"], payload["status"], payload["categories"], payload["tags"],
        )
        try:
            data = self.client.create_post(payload)
        except MalformedResponseError as e:
            data = self._unreadable("create", e)
        except UpstreamConnectionError:
            raise
        except APIError as e:
            raise self._rejection("create", e)

        created = UpstreamPost.from_response(data)
        logger.info("Upstream accepted post create (id=%s, status=%s)", created.id, created.status)
        return created

    def update(self, post_id: int, post: NormalizedPost) -> UpstreamPost:
        """Update an existing post upstream.

        Raises:
            UpstreamRejection: If the upstream answers with a non-2xx status
            UpstreamConnectionError: If the upstream cannot be reached
        """
        payload = self.build_payload(post, "update")
        logger.debug("Updating post %s with fields %s", post_id, sorted(payload))
        try:
            data = self.client.update_post(post_id, payload)
        except MalformedResponseError as e:
            data = self._unreadable("update", e)
        except UpstreamConnectionError:
            raise
        except APIError as e:
            raise self._rejection("update", e)

        updated = UpstreamPost.from_response(data)
        logger.info("Upstream accepted post update (id=%s, status=%s)", updated.id or post_id, updated.status)
        return updated

    @staticmethod
    def _unreadable(operation: str, error: MalformedResponseError) -> Dict[str, Any]:
        """An accepted write whose answer could not be parsed carries no post data."""
        logger.warning(
            "Upstream accepted post %s but the response was not JSON: status=%s body=%.200r",
            operation, error.status_code, error.response_data.get("message"),
        )
        return {}

    @staticmethod
    def _rejection(operation: str, error: APIError) -> UpstreamRejection:
        logger.error(
            "Upstream rejected post %s: status=%s body=%s",
            operation, error.status_code, error.response_data,
        )
        return UpstreamRejection(
            error.message or f"Failed to {operation} post",
            status_code=error.status_code,
            response_data=error.response_data,
        )
