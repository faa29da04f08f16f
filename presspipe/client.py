"""Upstream CMS API client.

This module provides a thin client for the WordPress-compatible REST API
the publishing pipeline writes to: taxonomy lookup and creation plus the
posts endpoints, with error handling that keeps the upstream error body
intact.
"""

import logging
from typing import Dict, List, Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .auth import BearerToken
from .config import Profile, DEFAULT_API_PATH
from .exceptions import (
    APIError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    RateLimitError,
    MalformedResponseError,
    UpstreamConnectionError,
)

logger = logging.getLogger(__name__)


class WordPressClient:
    """Client for the upstream CMS REST API."""

    def __init__(
        self,
        profile: Optional[Profile] = None,
        url: Optional[str] = None,
        token: Optional[BearerToken] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the API client.

        Args:
            profile: Configuration profile
            url: Site URL (if profile not provided)
            token: Bearer token for authenticated calls
            timeout: Request timeout in seconds (if profile not provided)
            session: Optional preconfigured session

        Raises:
            ValueError: If neither profile nor url is provided
        """
        if profile:
            self.api_base = profile.api_base
            self.timeout = profile.timeout
        else:
            if not url:
                raise ValueError("Either profile or url parameter must be provided")
            self.api_base = f"{url.rstrip('/')}{DEFAULT_API_PATH}"
            self.timeout = timeout

        self.token = token
        self.session = session or requests.Session()
        self._configure_session()

    def _configure_session(self) -> None:
        """Configure the session's connection pool.

        Retries are disabled: a failed call fails its step immediately.
        """
        retry_strategy = Retry(total=0, raise_on_status=False)
        adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=20)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return self.token.headers()
        return {"Content-Type": "application/json", "Accept": "application/json"}

    @staticmethod
    def _error_data(response: requests.Response) -> Dict[str, Any]:
        """Upstream error body, parsed when it is JSON and wrapped otherwise."""
        try:
            data = response.json()
        except ValueError:
            return {"message": response.text} if response.text else {}
        return data if isinstance(data, dict) else {"message": data}

    def _handle_response(self, response: requests.Response) -> Any:
        """Handle API response and convert errors to appropriate exceptions.

        Args:
            response: Response object

        Returns:
            Parsed JSON response

        Raises:
            APIError: For non-2xx responses
            MalformedResponseError: For 2xx responses that are not JSON
        """
        if response.ok:
            try:
                return response.json()
            except ValueError:
                raise MalformedResponseError(
                    "Upstream returned a non-JSON response",
                    status_code=response.status_code,
                    response_data={"message": response.text},
                )

        error_data = self._error_data(response)
        upstream_message = error_data.get("message")

        if response.status_code == 400:
            raise BadRequestError(
                upstream_message or "Bad request",
                status_code=response.status_code,
                response_data=error_data,
            )
        elif response.status_code == 401:
            raise UnauthorizedError(
                upstream_message or "Unauthorized - check your token",
                status_code=response.status_code,
                response_data=error_data,
            )
        elif response.status_code == 403:
            raise ForbiddenError(
                upstream_message or "Forbidden - insufficient permissions",
                status_code=response.status_code,
                response_data=error_data,
            )
        elif response.status_code == 404:
            raise NotFoundError(
                upstream_message or "Resource not found",
                status_code=response.status_code,
                response_data=error_data,
            )
        elif response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                upstream_message or "Rate limit exceeded",
                status_code=response.status_code,
                response_data=error_data,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        elif response.status_code >= 500:
            raise ServerError(
                upstream_message or f"Server error: {response.status_code}",
                status_code=response.status_code,
                response_data=error_data,
            )

        raise APIError(
            upstream_message or f"Unexpected response: {response.status_code}",
            status_code=response.status_code,
            response_data=error_data,
        )

    def _make_request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request.

        Args:
            method: HTTP method
            endpoint: API endpoint relative to the API base
            **kwargs: Additional request parameters

        Returns:
            Parsed JSON response

        Raises:
            APIError: For upstream error responses
            UpstreamConnectionError: When the upstream cannot be reached
        """
        return self._handle_response(self._send(method, endpoint, **kwargs))

    def _send(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        url = f"{self.api_base}{endpoint}"
        logger.debug("%s %s params=%s", method, url, kwargs.get("params"))

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout as e:
            raise UpstreamConnectionError(f"Request timeout: {e}")
        except requests.exceptions.RequestException as e:
            raise UpstreamConnectionError(f"Request failed: {e}")

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    # Taxonomy methods
    def find_categories(self, slug: str) -> List[Dict[str, Any]]:
        """Get categories matching a slug.

        Args:
            slug: Category slug

        Returns:
            List of matching categories (usually zero or one)
        """
        result = self._make_request("GET", "/categories", params={"slug": slug})
        return result if isinstance(result, list) else []

    def search_tags(self, name: str) -> List[Dict[str, Any]]:
        """Search tags by name.

        The upstream search is fuzzy; callers pick the exact match.

        Args:
            name: Tag name to search for

        Returns:
            List of candidate tags
        """
        result = self._make_request("GET", "/tags", params={"search": name})
        return result if isinstance(result, list) else []

    def create_tag(self, name: str) -> Dict[str, Any]:
        """Create a new tag.

        Args:
            name: Tag name

        Returns:
            Created tag data
        """
        return self._make_request("POST", "/tags", json={"name": name})

    # Posts API methods
    def list_posts(
        self,
        page: int = 1,
        per_page: int = 10,
        categories: Optional[List[int]] = None,
        search: Optional[str] = None,
        author: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """List posts, newest first.

        Args:
            page: Page number (1-based)
            per_page: Posts per page (upstream caps this at 100)
            categories: Category IDs to filter by
            search: Full-text search string
            author: Only posts by this user ID
            status: Comma-separated statuses (non-public ones need a token)

        Returns:
            Dictionary with posts and the upstream pagination totals
        """
        params: Dict[str, Any] = {"page": page, "per_page": per_page}
        if categories:
            params["categories"] = ",".join(str(category_id) for category_id in categories)
        if search:
            params["search"] = search
        if author is not None:
            params["author"] = author
        if status:
            params["status"] = status

        response = self._send("GET", "/posts", params=params)
        posts = self._handle_response(response)
        return {
            "posts": posts if isinstance(posts, list) else [],
            "total": self._header_int(response, "X-WP-Total"),
            "total_pages": self._header_int(response, "X-WP-TotalPages"),
        }

    @staticmethod
    def _header_int(response: requests.Response, name: str) -> Optional[int]:
        value = response.headers.get(name)
        return int(value) if value and value.isdigit() else None

    def get_post(self, post_id: int) -> Dict[str, Any]:
        """Get a specific post by ID."""
        return self._make_request("GET", f"/posts/{post_id}")

    def create_post(self, post_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new post.

        Args:
            post_data: Post payload

        Returns:
            Created post response data
        """
        return self._make_request("POST", "/posts", json=post_data)

    def update_post(self, post_id: int, post_data: Dict[str, Any]) -> Dict[str, Any]:
        """Update an existing post.

        Args:
            post_id: Post ID
            post_data: Post payload

        Returns:
            Updated post response data
        """
        return self._make_request("PUT", f"/posts/{post_id}", json=post_data)

    def delete_post(self, post_id: int, force: bool = False) -> Dict[str, Any]:
        """Delete a post.

        Args:
            post_id: Post ID
            force: Delete permanently instead of moving to the trash

        Returns:
            ``{"deleted": True, "previous": {...}}`` when forced, otherwise the
            trashed post
        """
        params = {"force": "true" if force else "false"}
        return self._make_request("DELETE", f"/posts/{post_id}", params=params)

    # Utility methods
    def get_current_user(self) -> Dict[str, Any]:
        """Get the user the token belongs to."""
        return self._make_request("GET", "/users/me")

    def test_connection(self) -> bool:
        """Test connection to the upstream CMS.

        Returns:
            True if connection is successful
        """
        try:
            if self.authenticated:
                self.get_current_user()
            else:
                self._make_request("GET", "/categories", params={"per_page": 1})
            return True
        except APIError as e:
            logger.warning("Connection test failed: %s", e.message)
            return False

    def close(self) -> None:
        self.session.close()
