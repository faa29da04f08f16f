"""Editorial status translation."""

from typing import Dict, Union

from ..exceptions import UnknownStatusError
from ..models.post import EditorialStatus, UpstreamStatus

STATUS_MAP: Dict[EditorialStatus, UpstreamStatus] = {
    EditorialStatus.DRAFT: "draft",
    EditorialStatus.PENDING: "pending",
    EditorialStatus.PUBLISH: "publish",
    EditorialStatus.PUBLISHED: "publish",
}


class StatusMapper:
    """Translates editorial statuses into the upstream status vocabulary."""

    def map(self, status: Union[EditorialStatus, str]) -> UpstreamStatus:
        """Map an editorial status onto an upstream status literal.

        Args:
            status: Editorial status, as enum member or its string value

        Returns:
            One of "draft", "pending" or "publish"

        Raises:
            UnknownStatusError: For anything outside the closed set
        """
        try:
            key = EditorialStatus(status)
        except ValueError:
            raise UnknownStatusError(f"Unknown editorial status: {status!r}")
        return STATUS_MAP[key]
