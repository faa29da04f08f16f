"""Integration tests for the presspipe command line.

Runs the Typer app with CliRunner against a temporary configuration
directory and a mocked upstream client.
"""

import json
import pytest
from unittest.mock import Mock, patch

from typer.testing import CliRunner

from presspipe import __version__
from presspipe.app import app, register_commands
from presspipe.client import WordPressClient
from presspipe.config import ConfigManager
from presspipe.exceptions import ForbiddenError

register_commands()

runner = CliRunner()


@pytest.fixture
def env(tmp_path):
    """Environment pointing the CLI at a temporary config directory."""
    return {
        "PRESSPIPE_CONFIG_DIR": str(tmp_path),
        "PRESSPIPE_API_URL": None,
        "PRESSPIPE_TOKEN": None,
        "PRESSPIPE_OUTPUT_FORMAT": None,
    }


@pytest.fixture
def configured(tmp_path, env):
    """A config directory holding an active 'news' profile."""
    ConfigManager(config_dir=tmp_path).create_profile("news", "https://news.example.com")
    return env


@pytest.fixture
def client_factory():
    """Patch the client factory to hand out a mocked upstream client."""
    client = Mock(spec=WordPressClient)
    client.token = None
    client.api_base = "https://news.example.com/wp-json/wp/v2"
    client.find_categories.return_value = [{"id": 7, "name": "Sports", "slug": "sports"}]
    client.search_tags.return_value = []
    client.create_tag.side_effect = lambda name: {"id": 30 + len(name), "name": name}
    client.create_post.return_value = {"id": 42, "title": {"rendered": "Match report"}, "status": "draft"}
    client.update_post.return_value = {"id": 42, "title": {"rendered": "Match report"}, "status": "publish"}
    client.get_post.return_value = {"id": 42, "title": {"rendered": "Match report"}, "status": "draft"}

    def build(*args, token=None, **kwargs):
        client.token = token
        return client

    with patch("presspipe.utils.client_factory.WordPressClient", return_value=client, side_effect=build) as factory:
        yield factory


@pytest.fixture
def upstream(client_factory):
    """The mocked upstream client."""
    return client_factory.return_value


class TestGlobalOptions:
    """Tests for the app callback."""

    def test_version(self, env):
        """Test --version prints the version."""
        result = runner.invoke(app, ["--version"], env=env)

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_profile(self, configured):
        """Test an explicitly requested profile must exist."""
        result = runner.invoke(app, ["--profile", "missing", "config", "list"], env=configured)

        assert result.exit_code == 1
        assert "Profile 'missing' not found" in result.output


class TestConfigCommands:
    """Tests for the config command group."""

    def test_init_and_list(self, env):
        """Test a profile created with init shows up as active."""
        result = runner.invoke(app, ["config", "init", "--name", "news", "--url", "https://news.example.com"], env=env)
        assert result.exit_code == 0
        assert "saved and set as active" in result.output

        result = runner.invoke(app, ["--output", "json", "config", "list"], env=env)
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["active_profile"] == "news"
        assert data["profiles"][0]["url"] == "https://news.example.com"

    def test_init_custom_categories(self, env, tmp_path):
        """Test the allowed categories can be narrowed."""
        result = runner.invoke(
            app,
            ["config", "init", "--name", "sports", "--url", "https://sports.example.com", "--category", "Sports", "--sequential-taxonomy"],
            env=env,
        )

        assert result.exit_code == 0
        profile = ConfigManager(config_dir=tmp_path).get_profile("sports")
        assert profile.categories == ["sports"]
        assert profile.concurrent_taxonomy is False

    def test_init_duplicate(self, configured):
        """Test creating an existing profile fails."""
        result = runner.invoke(app, ["config", "init", "--name", "news", "--url", "https://news.example.com"], env=configured)

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_use_and_delete(self, configured, tmp_path):
        """Test switching and deleting profiles."""
        ConfigManager(config_dir=tmp_path).create_profile("sports", "https://sports.example.com")

        result = runner.invoke(app, ["config", "use", "sports"], env=configured)
        assert result.exit_code == 0
        assert ConfigManager(config_dir=tmp_path).get_active_profile() == "sports"

        result = runner.invoke(app, ["config", "delete", "news", "--force"], env=configured)
        assert result.exit_code == 0
        assert [p["name"] for p in ConfigManager(config_dir=tmp_path).list_profiles()] == ["sports"]

    def test_delete_cancelled(self, configured, tmp_path):
        """Test answering no keeps the profile."""
        result = runner.invoke(app, ["config", "delete", "news"], input="n\n", env=configured)

        assert result.exit_code == 0
        assert "Delete cancelled" in result.output
        assert ConfigManager(config_dir=tmp_path).get_profile("news")

    def test_show(self, configured):
        """Test show reports the profile in use."""
        result = runner.invoke(app, ["--output", "json", "config", "show"], env=configured)

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["name"] == "news"
        assert data["api_base"] == "https://news.example.com/wp-json/wp/v2"

    def test_connection_check(self, configured, upstream):
        """Test the connection check reports the API base."""
        upstream.test_connection.return_value = True

        result = runner.invoke(app, ["config", "test"], env=configured)

        assert result.exit_code == 0
        assert "Connected to https://news.example.com/wp-json/wp/v2" in result.output

    def test_connection_check_failure(self, configured, upstream):
        """Test a failed connection check exits with 1."""
        upstream.test_connection.return_value = False

        result = runner.invoke(app, ["config", "test"], env=configured)

        assert result.exit_code == 1


class TestPostCommands:
    """Tests for the posts command group."""

    def test_create(self, configured, upstream):
        """Test a create renders the result as JSON."""
        result = runner.invoke(
            app,
            [
                "--output", "json", "posts", "create",
                "--title", "Match report",
                "--body", "<p>We won</p>",
                "--category", "sports",
                "--tag", "News,Local",
                "--tag", "news",
                "--image", "https://cdn.example.com/goal.jpg|The goal",
                "--token", "opaque-token",
            ],
            env=configured,
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["post"]["id"] == 42
        assert data["message"] == "Post created successfully"

        payload = upstream.create_post.call_args.args[0]
        assert payload["categories"] == [7]
        assert payload["tags"] == [34, 35]
        assert payload["status"] == "draft"
        assert payload["content"].startswith('<figure class="wp-block-image"><img src="https://cdn.example.com/goal.jpg" alt="The goal"')

    def test_create_token_from_environment(self, configured, upstream):
        """Test PRESSPIPE_TOKEN supplies the token."""
        result = runner.invoke(
            app,
            ["--output", "json", "posts", "create", "--title", "Match report", "--body", "<p>We won</p>"],
            env={**configured, "PRESSPIPE_TOKEN": "opaque-token"},
        )

        assert result.exit_code == 0, result.output
        assert upstream.create_post.called

    def test_create_body_from_file(self, configured, upstream, tmp_path):
        """Test the body can be read from a file."""
        body_file = tmp_path / "report.html"
        body_file.write_text("<p>From file</p>", encoding="utf-8")

        result = runner.invoke(
            app,
            ["--output", "json", "posts", "create", "--title", "Match report", "--file", str(body_file), "--token", "opaque-token"],
            env=configured,
        )

        assert result.exit_code == 0, result.output
        assert upstream.create_post.call_args.args[0]["content"] == "<p>From file</p>"

    def test_create_without_token(self, configured, upstream):
        """Test a missing token fails with the authentication error."""
        result = runner.invoke(
            app,
            ["--output", "json", "posts", "create", "--title", "Match report", "--body", "<p>We won</p>"],
            env=configured,
        )

        assert result.exit_code == 1
        assert "Authentication required" in result.output
        upstream.create_post.assert_not_called()

    def test_create_blank_body(self, configured, upstream):
        """Test a blank body fails validation without upstream calls."""
        result = runner.invoke(
            app,
            ["--output", "table", "posts", "create", "--title", "Match report", "--token", "opaque-token"],
            env=configured,
        )

        assert result.exit_code == 1
        assert "Title and content are required" in result.output
        assert upstream.method_calls == []

    def test_create_without_profile(self, env):
        """Test commands report a missing configuration."""
        result = runner.invoke(
            app,
            ["posts", "create", "--title", "Match report", "--body", "<p>We won</p>", "--token", "opaque-token"],
            env=env,
        )

        assert result.exit_code == 1
        assert "No CMS configuration found" in result.output

    def test_create_from_environment_url(self, env, client_factory):
        """Test PRESSPIPE_API_URL alone is enough configuration."""
        result = runner.invoke(
            app,
            ["--output", "json", "posts", "create", "--title", "Match report", "--body", "<p>We won</p>", "--token", "opaque-token"],
            env={**env, "PRESSPIPE_API_URL": "https://env.example.com"},
        )

        assert result.exit_code == 0, result.output
        profile = client_factory.call_args.kwargs["profile"]
        assert profile.api_base == "https://env.example.com/wp-json/wp/v2"

    def test_update(self, configured, upstream):
        """Test an update sends status only when given."""
        result = runner.invoke(
            app,
            [
                "--output", "json", "posts", "update", "42",
                "--title", "Match report",
                "--body", "<p>We won</p>",
                "--status", "published",
                "--token", "opaque-token",
            ],
            env=configured,
        )

        assert result.exit_code == 0, result.output
        post_id, payload = upstream.update_post.call_args.args
        assert post_id == 42
        assert payload["status"] == "publish"
        assert "tags" not in payload
        assert json.loads(result.stdout)["message"] == "Post updated successfully"

    def test_update_rejected(self, configured, upstream):
        """Test an upstream refusal exits with 1."""
        upstream.update_post.side_effect = ForbiddenError(
            "Sorry, you are not allowed to edit this post.",
            status_code=403,
            response_data={"code": "rest_cannot_edit", "message": "Sorry, you are not allowed to edit this post."},
        )

        result = runner.invoke(
            app,
            ["--output", "table", "posts", "update", "42", "--title", "t", "--body", "b", "--token", "opaque-token"],
            env=configured,
        )

        assert result.exit_code == 1
        assert "not allowed to edit this post" in result.output

    def test_get(self, configured, upstream):
        """Test reading a post back."""
        result = runner.invoke(app, ["--output", "json", "posts", "get", "42"], env=configured)

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["title"] == {"rendered": "Match report"}
        upstream.get_post.assert_called_once_with(42)

    def test_create_video_display_name(self, configured, upstream):
        """Test a video value with a display name embeds only the URL."""
        result = runner.invoke(
            app,
            [
                "--output", "json", "posts", "create",
                "--title", "Match report",
                "--body", "<p>We won</p>",
                "--video", "https://cdn.example.com/goal.mp4|Goal replay",
                "--token", "opaque-token",
            ],
            env=configured,
        )

        assert result.exit_code == 0, result.output
        content = upstream.create_post.call_args.args[0]["content"]
        assert content.startswith('<figure class="wp-block-video"><video controls src="https://cdn.example.com/goal.mp4"')
        assert "Goal replay" not in content


class TestPostListAndDelete:
    """Tests for listing and deleting posts."""

    @pytest.fixture
    def listing(self, upstream):
        upstream.list_posts.return_value = {
            "posts": [{"id": 42, "date": "2024-05-01T10:00:00", "title": {"rendered": "Match report"}, "status": "publish"}],
            "total": 11,
            "total_pages": 2,
        }
        return upstream

    def test_list(self, configured, listing):
        """Test listing renders the upstream page as JSON."""
        result = runner.invoke(app, ["--output", "json", "posts", "list", "--search", "derby"], env=configured)

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["total"] == 11
        assert data["page"] == 1
        assert data["posts"][0]["id"] == 42
        listing.list_posts.assert_called_once_with(
            page=1, per_page=10, categories=None, search="derby", author=None, status=None
        )

    def test_list_table(self, configured, listing):
        """Test the table view shows the posts and the page count."""
        result = runner.invoke(app, ["--output", "table", "posts", "list"], env=configured)

        assert result.exit_code == 0, result.output
        assert "Match report" in result.output
        assert "Page 1 of 2 (11 posts)" in result.output

    def test_list_by_category_slug(self, configured, listing):
        """Test a category slug is resolved to its id before listing."""
        result = runner.invoke(app, ["--output", "json", "posts", "list", "--category", "Sports", "--page", "2"], env=configured)

        assert result.exit_code == 0, result.output
        listing.find_categories.assert_called_once_with("sports")
        kwargs = listing.list_posts.call_args.kwargs
        assert kwargs["categories"] == [7]
        assert kwargs["page"] == 2

    def test_list_unknown_category(self, configured, listing):
        """Test an unmatched category slug fails instead of listing everything."""
        listing.find_categories.return_value = []

        result = runner.invoke(app, ["posts", "list", "--category", "charity"], env=configured)

        assert result.exit_code == 1
        assert "Category not found: charity" in result.output
        listing.list_posts.assert_not_called()

    def test_list_mine(self, configured, listing):
        """Test --mine filters by the token's user and includes drafts."""
        listing.get_current_user.return_value = {"id": 3, "name": "editor"}

        result = runner.invoke(app, ["--output", "json", "posts", "list", "--mine", "--token", "opaque-token"], env=configured)

        assert result.exit_code == 0, result.output
        kwargs = listing.list_posts.call_args.kwargs
        assert kwargs["author"] == 3
        assert kwargs["status"] == "publish,draft,pending"

    def test_list_mine_requires_token(self, configured, listing):
        """Test --mine without a token fails before any upstream call."""
        result = runner.invoke(app, ["posts", "list", "--mine"], env=configured)

        assert result.exit_code == 1
        assert "Authentication required" in result.output
        assert listing.method_calls == []

    def test_delete_confirmed(self, configured, upstream):
        """Test delete shows the post, asks, and moves it to the trash."""
        upstream.delete_post.return_value = {"id": 42, "status": "trash"}

        result = runner.invoke(
            app, ["--output", "table", "posts", "delete", "42", "--token", "opaque-token"], input="y\n", env=configured
        )

        assert result.exit_code == 0, result.output
        assert "Match report" in result.output
        assert "Post moved to trash" in result.output
        upstream.delete_post.assert_called_once_with(42, force=False)

    def test_delete_cancelled(self, configured, upstream):
        """Test answering no leaves the post alone."""
        result = runner.invoke(app, ["posts", "delete", "42", "--token", "opaque-token"], input="n\n", env=configured)

        assert result.exit_code == 0
        assert "Delete cancelled" in result.output
        upstream.delete_post.assert_not_called()

    def test_delete_forced_permanently(self, configured, upstream):
        """Test --force skips the prompt and --permanent bypasses the trash."""
        upstream.delete_post.return_value = {"deleted": True, "previous": {"id": 42}}

        result = runner.invoke(
            app,
            ["--output", "json", "posts", "delete", "42", "--force", "--permanent", "--token", "opaque-token"],
            env=configured,
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "success": True,
            "id": 42,
            "permanent": True,
            "message": "Post deleted successfully",
        }
        upstream.get_post.assert_not_called()
        upstream.delete_post.assert_called_once_with(42, force=True)

    def test_delete_requires_token(self, configured, upstream):
        """Test delete without a token fails before any upstream call."""
        result = runner.invoke(app, ["posts", "delete", "42", "--force"], env=configured)

        assert result.exit_code == 1
        assert "Authentication required" in result.output
        assert upstream.method_calls == []
