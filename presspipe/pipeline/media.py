"""Embedding uploaded media into post bodies as figure markup."""

import logging
from html import escape
from typing import Sequence

from typing_extensions import Literal

from ..models.post import MediaReference

logger = logging.getLogger(__name__)

EmbedMode = Literal["create", "update"]

IMAGE_FIGURE = '<figure class="wp-block-image">'
VIDEO_FIGURE = '<figure class="wp-block-video">'
DEFAULT_ALT_TEXT = "Uploaded image"


class MediaEmbedder:
    """Turns media references into body markup and merges it into the body."""

    def render(self, ref: MediaReference) -> str:
        """Render a single media reference as a figure fragment.

        Args:
            ref: Media reference to render

        Returns:
            Figure markup for the reference
        """
        src = escape(ref.url, quote=True)
        if ref.kind == "image":
            alt = escape(ref.display_name.strip() or DEFAULT_ALT_TEXT, quote=True)
            return f'{IMAGE_FIGURE}<img src="{src}" alt="{alt}" class="wp-image" /></figure>'
        return f'{VIDEO_FIGURE}<video controls src="{src}" class="wp-video"></video></figure>'

    @staticmethod
    def has_embedded_media(body: str) -> bool:
        """Whether the body already contains image or video figures."""
        return IMAGE_FIGURE in body or VIDEO_FIGURE in body

    def embed(self, body: str, media: Sequence[MediaReference], mode: EmbedMode = "create") -> str:
        """Merge media fragments into a post body.

        On create, every fragment is prepended in input order. On update the
        fragments are only prepended when the body has no image or video
        figure yet; an author who already placed media in the editor keeps
        the body as written.

        Args:
            body: Author's body markup
            media: Media references, in display order
            mode: "create" or "update"

        Returns:
            The body with media merged in
        """
        if mode not in ("create", "update"):
            raise ValueError(f"Unknown embed mode: {mode!r}")
        if not media:
            return body

        if mode == "update" and self.has_embedded_media(body):
            logger.debug("Body already has embedded media, skipping %d fragment(s)", len(media))
            return body

        fragments = "".join(self.render(ref) for ref in media)
        return fragments + body
