"""Contract tests for the upstream posts endpoints.

These tests pin down the requests WordPressClient sends for post create,
update and read, and how upstream responses and failures are surfaced.
"""

import pytest
from unittest.mock import Mock

import requests

from presspipe.auth import BearerToken
from presspipe.client import WordPressClient
from presspipe.config import Profile
from presspipe.exceptions import (
    APIError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    MalformedResponseError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UpstreamConnectionError,
)


def make_response(status_code=200, json_data=None, text="", headers=None):
    """Build a requests.Response stand-in."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers or {}
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    profile = Profile(name="news", url="https://news.example.com", timeout=12)
    return WordPressClient(profile=profile, token=BearerToken("opaque-token"), session=session)


@pytest.fixture
def post_response():
    return {
        "id": 42,
        "date": "2024-05-01T10:00:00",
        "status": "draft",
        "link": "https://news.example.com/?p=42",
        "title": {"rendered": "Match report"},
        "content": {"rendered": "<p>We won</p>", "protected": False},
        "excerpt": {"rendered": "", "protected": False},
        "author": 3,
        "categories": [7],
        "tags": [31],
    }


class TestPostsApi:
    """Contract tests for the posts endpoints."""

    def test_create_post_request(self, client, session, post_response):
        """Test create POSTs the payload as JSON with the bearer token."""
        session.request.return_value = make_response(201, post_response)
        payload = {"title": "Match report", "content": "<p>We won</p>", "status": "draft", "categories": [7], "tags": [31]}

        result = client.create_post(payload)

        assert result == post_response
        session.request.assert_called_once_with(
            method="POST",
            url="https://news.example.com/wp-json/wp/v2/posts",
            headers={
                "Authorization": "Bearer opaque-token",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=12,
            json=payload,
        )

    def test_update_post_request(self, client, session, post_response):
        """Test update PUTs to the post's URL."""
        session.request.return_value = make_response(200, post_response)

        client.update_post(42, {"title": "Match report"})

        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "PUT"
        assert kwargs["url"] == "https://news.example.com/wp-json/wp/v2/posts/42"
        assert kwargs["json"] == {"title": "Match report"}

    def test_get_post_request(self, client, session, post_response):
        """Test reading a post back by id."""
        session.request.return_value = make_response(200, post_response)

        assert client.get_post(42)["id"] == 42
        assert session.request.call_args.kwargs["url"].endswith("/posts/42")

    def test_list_posts_request(self, client, session, post_response):
        """Test listing sends the filters as query parameters and reads the totals."""
        session.request.return_value = make_response(
            200, [post_response], headers={"X-WP-Total": "23", "X-WP-TotalPages": "3"}
        )

        result = client.list_posts(page=2, per_page=10, categories=[7], search="derby", author=3, status="publish,draft")

        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "https://news.example.com/wp-json/wp/v2/posts"
        assert kwargs["params"] == {
            "page": 2,
            "per_page": 10,
            "categories": "7",
            "search": "derby",
            "author": 3,
            "status": "publish,draft",
        }
        assert result == {"posts": [post_response], "total": 23, "total_pages": 3}

    def test_list_posts_defaults(self, client, session):
        """Test an unfiltered listing sends only pagination and tolerates missing totals."""
        session.request.return_value = make_response(200, [])

        result = client.list_posts()

        assert session.request.call_args.kwargs["params"] == {"page": 1, "per_page": 10}
        assert result == {"posts": [], "total": None, "total_pages": None}

    def test_delete_post_request(self, client, session, post_response):
        """Test delete moves the post to the trash unless forced."""
        session.request.return_value = make_response(200, {**post_response, "status": "trash"})

        assert client.delete_post(42)["status"] == "trash"

        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "DELETE"
        assert kwargs["url"] == "https://news.example.com/wp-json/wp/v2/posts/42"
        assert kwargs["params"] == {"force": "false"}

    def test_delete_post_forced(self, client, session, post_response):
        """Test a forced delete asks the upstream to bypass the trash."""
        session.request.return_value = make_response(200, {"deleted": True, "previous": post_response})

        assert client.delete_post(42, force=True)["deleted"] is True
        assert session.request.call_args.kwargs["params"] == {"force": "true"}

    def test_unauthenticated_headers(self, session):
        """Test requests without a token carry no Authorization header."""
        client = WordPressClient(url="https://news.example.com", session=session)
        session.request.return_value = make_response(200, {"id": 1})

        client.get_post(1)

        assert "Authorization" not in session.request.call_args.kwargs["headers"]
        assert client.api_base == "https://news.example.com/wp-json/wp/v2"

    def test_requires_profile_or_url(self):
        """Test a client needs somewhere to talk to."""
        with pytest.raises(ValueError, match="Either profile or url"):
            WordPressClient()

    @pytest.mark.parametrize("status_code,error_class", [
        (400, BadRequestError),
        (401, UnauthorizedError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (500, ServerError),
        (503, ServerError),
        (409, APIError),
    ])
    def test_error_status_mapping(self, client, session, status_code, error_class):
        """Test upstream error statuses map onto the APIError family."""
        body = {"code": "rest_error", "message": "Upstream says no", "data": {"status": status_code}}
        session.request.return_value = make_response(status_code, body)

        with pytest.raises(error_class) as exc_info:
            client.create_post({"title": "t"})

        assert exc_info.value.status_code == status_code
        assert exc_info.value.message == "Upstream says no"
        assert exc_info.value.response_data == body
        assert exc_info.value.error_code == "rest_error"

    def test_rate_limit_retry_after(self, client, session):
        """Test the Retry-After header is surfaced."""
        session.request.return_value = make_response(429, {"message": "Slow down"}, headers={"Retry-After": "30"})

        with pytest.raises(RateLimitError) as exc_info:
            client.get_post(1)

        assert exc_info.value.retry_after == 30

    def test_non_json_error_body(self, client, session):
        """Test a non-JSON error body is kept as the message."""
        session.request.return_value = make_response(502, text="Bad Gateway")

        with pytest.raises(ServerError) as exc_info:
            client.get_post(1)

        assert exc_info.value.response_data == {"message": "Bad Gateway"}

    def test_non_json_success_body(self, client, session):
        """Test a 2xx answer that is not JSON raises MalformedResponseError with the text."""
        session.request.return_value = make_response(200, text="<html>maintenance</html>")

        with pytest.raises(MalformedResponseError, match="non-JSON") as exc_info:
            client.get_post(1)

        assert exc_info.value.status_code == 200
        assert exc_info.value.response_data == {"message": "<html>maintenance</html>"}

    def test_timeout(self, client, session):
        """Test timeouts become UpstreamConnectionError."""
        session.request.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(UpstreamConnectionError, match="Request timeout"):
            client.get_post(1)

    def test_connection_error(self, client, session):
        """Test network failures become UpstreamConnectionError."""
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(UpstreamConnectionError, match="Request failed"):
            client.create_post({"title": "t"})


class TestConnectionCheck:
    """Contract tests for the connection check."""

    def test_authenticated_check_uses_current_user(self, client, session):
        """Test an authenticated check reads the current user."""
        session.request.return_value = make_response(200, {"id": 3, "name": "editor"})

        assert client.test_connection() is True
        assert session.request.call_args.kwargs["url"].endswith("/users/me")

    def test_anonymous_check_reads_categories(self, session):
        """Test an anonymous check reads one category."""
        client = WordPressClient(url="https://news.example.com", session=session)
        session.request.return_value = make_response(200, [])

        assert client.test_connection() is True
        assert session.request.call_args.kwargs["params"] == {"per_page": 1}

    def test_failed_check(self, client, session):
        """Test a failed check returns False."""
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        assert client.test_connection() is False
