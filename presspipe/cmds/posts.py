"""Post commands for the presspipe CLI.

This module runs author submissions through the publishing pipeline to
create and update posts, and manages existing posts on the upstream CMS.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console

from ..exceptions import ValidationError
from ..models.post import UpstreamPost
from ..models.result import PublishResult
from ..pipeline.terms import TermResolver
from ..render import OutputFormatter
from ..utils.client_factory import get_client_and_formatter, get_pipeline_and_formatter
from ..app import handle_exceptions

app = typer.Typer()
console = Console()

USER_POST_STATUSES = "publish,draft,pending"


def _read_body(body: Optional[str], file: Optional[Path]) -> str:
    if body is not None and file is not None:
        raise ValidationError("Use either --body or --file, not both", field="body")
    if file is not None:
        try:
            return file.read_text(encoding="utf-8")
        except OSError as e:
            raise ValidationError(f"Failed to read {file}: {e}", field="body")
    return body or ""


def _split_tags(tags: Optional[List[str]]) -> List[str]:
    """Flatten repeated --tag options, each of which may be a comma list."""
    names: List[str] = []
    for value in tags or []:
        names.extend(part for part in value.split(",") if part.strip())
    return names


def _media_refs(images: Optional[List[str]], videos: Optional[List[str]]) -> List[Dict[str, str]]:
    """Build media references from URL options.

    Each value is a URL, optionally followed by ``|`` and a display name.
    """
    refs = []
    for kind, values in (("image", images or []), ("video", videos or [])):
        for value in values:
            url, _, name = value.partition("|")
            refs.append({"kind": kind, "url": url.strip(), "display_name": name.strip()})
    return refs


def _submission(
    title: str,
    body: str,
    excerpt: Optional[str],
    category: Optional[str],
    tags: Optional[List[str]],
    status: Optional[str],
    images: Optional[List[str]],
    videos: Optional[List[str]],
) -> Dict[str, Any]:
    submission: Dict[str, Any] = {
        "title": title,
        "body": body,
        "media": _media_refs(images, videos),
    }
    if excerpt is not None:
        submission["excerpt"] = excerpt
    if category is not None:
        submission["category"] = category
    # Absent tags leave the upstream tags alone on update
    if tags:
        submission["tags"] = _split_tags(tags)
    if status is not None:
        submission["status"] = status
    return submission


def _show_result(result: PublishResult, formatter: OutputFormatter, output_format: Optional[str]) -> None:
    format_name = formatter.determine_format(output_format)
    if format_name != "table":
        formatter.render(result.to_response(), format=format_name)
    elif result.success:
        post = result.post
        summary = {
            "id": post.id if post else None,
            "title": post.title if post else None,
            "status": post.status if post else None,
            "link": post.link if post else None,
        }
        formatter.render_table(summary, title=result.message)
        if result.warning:
            console.print(f"[yellow]⚠ {result.warning}[/yellow]")
        for note in result.notes:
            console.print(f"[dim]{note}[/dim]")
    else:
        console.print(f"[red]✗ {result.error} (status {result.status_code})[/red]")

    if not result.success:
        raise typer.Exit(1)


@app.command()
@handle_exceptions
def create(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", help="Post title"),
    body: Optional[str] = typer.Option(None, "--body", help="Post body (HTML)"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read the body from a file"),
    excerpt: Optional[str] = typer.Option(None, "--excerpt", help="Post excerpt"),
    category: Optional[str] = typer.Option(None, "--category", help="Category slug"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", help="Tag name (repeatable, comma lists allowed)"),
    status: Optional[str] = typer.Option(None, "--status", help="draft, pending or publish (default: draft)"),
    images: Optional[List[str]] = typer.Option(None, "--image", help="Image URL[|display name] to embed (repeatable)"),
    videos: Optional[List[str]] = typer.Option(None, "--video", help="Video URL[|display name] to embed (repeatable)"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (default: $PRESSPIPE_TOKEN)"),
) -> None:
    """Create a post.

    Examples:
        # Create a draft
        presspipe posts create --title "Match report" --body "<p>We won</p>" --category sports

        # Tag it and embed an image above the body
        presspipe posts create --title "Match report" --file report.html --tag "Sports,Local" --image "https://cdn.example.com/goal.jpg|The goal"

        # Publish straight away
        presspipe posts create --title "Breaking" --body "<p>...</p>" --status publish
    """
    pipeline, formatter = get_pipeline_and_formatter(ctx, token=token)
    submission = _submission(title, _read_body(body, file), excerpt, category, tags, status, images, videos)

    result = pipeline.create(submission)
    _show_result(result, formatter, ctx.obj["output_format"])


@app.command()
@handle_exceptions
def update(
    ctx: typer.Context,
    post_id: int = typer.Argument(..., help="Post ID"),
    title: str = typer.Option(..., "--title", help="Post title"),
    body: Optional[str] = typer.Option(None, "--body", help="Post body (HTML)"),
    file: Optional[Path] = typer.Option(None, "--file", help="Read the body from a file"),
    excerpt: Optional[str] = typer.Option(None, "--excerpt", help="Post excerpt"),
    category: Optional[str] = typer.Option(None, "--category", help="Category slug"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", help="Replace tags (repeatable, comma lists allowed)"),
    status: Optional[str] = typer.Option(None, "--status", help="New status (unchanged if omitted)"),
    images: Optional[List[str]] = typer.Option(None, "--image", help="Image URL[|display name] to embed (repeatable)"),
    videos: Optional[List[str]] = typer.Option(None, "--video", help="Video URL[|display name] to embed (repeatable)"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (default: $PRESSPIPE_TOKEN)"),
) -> None:
    """Update a post.

    Media is only embedded when the body has no embedded media yet.

    Examples:
        # Publish a draft
        presspipe posts update 42 --title "Match report" --file report.html --status publish

        # Replace the tags
        presspipe posts update 42 --title "Match report" --file report.html --tag Sports --tag Local
    """
    pipeline, formatter = get_pipeline_and_formatter(ctx, token=token)
    submission = _submission(title, _read_body(body, file), excerpt, category, tags, status, images, videos)

    result = pipeline.update(post_id, submission)
    _show_result(result, formatter, ctx.obj["output_format"])


@app.command()
@handle_exceptions
def get(
    ctx: typer.Context,
    post_id: int = typer.Argument(..., help="Post ID"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (needed for drafts)"),
) -> None:
    """Get a post by ID.

    Examples:
        presspipe posts get 42
        presspipe posts get 42 --output json
    """
    client, formatter = get_client_and_formatter(ctx, token=token)
    post = UpstreamPost.from_response(client.get_post(post_id))

    format_name = formatter.determine_format(ctx.obj["output_format"])
    if format_name == "table":
        data = post.model_dump(exclude={"content"})
        formatter.render_table(data, title=f"Post {post.id}")
    else:
        formatter.render(post.to_dict(), format=format_name)


@app.command("list")
@handle_exceptions
def list_posts(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    per_page: int = typer.Option(10, "--per-page", min=1, max=100, help="Posts per page"),
    category: Optional[str] = typer.Option(None, "--category", help="Filter by category slug"),
    search: Optional[str] = typer.Option(None, "--search", help="Full-text search"),
    mine: bool = typer.Option(False, "--mine", help="Only posts by the token's user, drafts included"),
    status: Optional[str] = typer.Option(None, "--status", help="Comma-separated statuses (needs a token)"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (default: $PRESSPIPE_TOKEN)"),
) -> None:
    """List posts.

    Examples:
        # Latest posts
        presspipe posts list

        # Second page of sports posts mentioning the derby
        presspipe posts list --category sports --search derby --page 2

        # Your own posts, drafts and pending included
        presspipe posts list --mine --token "$TOKEN"
    """
    client, formatter = get_client_and_formatter(ctx, token=token, require_token=mine)

    categories = None
    if category:
        term = TermResolver(client).resolve_category(category.strip().lower())
        if term is None:
            raise ValidationError(f"Category not found: {category}", field="category")
        categories = [term.id]

    author = None
    if mine:
        author = client.get_current_user().get("id")
        status = status or USER_POST_STATUSES

    result = client.list_posts(
        page=page,
        per_page=per_page,
        categories=categories,
        search=search,
        author=author,
        status=status,
    )

    format_name = formatter.determine_format(ctx.obj["output_format"])
    if format_name != "table":
        formatter.render({**result, "page": page}, format=format_name)
        return

    rows = []
    for item in result["posts"]:
        post = UpstreamPost.from_response(item)
        title = post.title or ""
        rows.append({
            "id": post.id,
            "title": title[:50] + "..." if len(title) > 50 else title,
            "status": post.status,
            "date": (item.get("date") or "")[:10],
            "link": post.link,
        })
    formatter.render_table(rows, title=f"Posts ({len(rows)} items)", columns=["id", "title", "status", "date", "link"])

    if result["total_pages"]:
        console.print(f"[dim]Page {page} of {result['total_pages']} ({result['total']} posts)[/dim]")


@app.command()
@handle_exceptions
def delete(
    ctx: typer.Context,
    post_id: int = typer.Argument(..., help="Post ID"),
    force: bool = typer.Option(False, "--force", help="Delete without confirmation"),
    permanent: bool = typer.Option(False, "--permanent", help="Skip the trash and delete permanently"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (default: $PRESSPIPE_TOKEN)"),
) -> None:
    """Delete a post.

    Posts are moved to the trash unless --permanent is given.

    Examples:
        # Delete with confirmation
        presspipe posts delete 42

        # Force delete without confirmation, bypassing the trash
        presspipe posts delete 42 --force --permanent
    """
    client, formatter = get_client_and_formatter(ctx, token=token, require_token=True)

    if not force:
        post = UpstreamPost.from_response(client.get_post(post_id))
        console.print("[yellow]About to delete post:[/yellow]")
        console.print(f"  ID: {post.id}")
        console.print(f"  Title: {post.title or ''}")
        console.print(f"  Status: {post.status or 'unknown'}")

        if not typer.confirm("Are you sure you want to delete this post?"):
            console.print("[yellow]Delete cancelled[/yellow]")
            return

    data = client.delete_post(post_id, force=permanent)
    if permanent:
        deleted = bool(data.get("deleted"))
        message = "Post deleted successfully" if deleted else "Post was not deleted"
    else:
        deleted = data.get("status") == "trash"
        message = "Post moved to trash" if deleted else "Post was not moved to trash"

    format_name = formatter.determine_format(ctx.obj["output_format"])
    if format_name != "table":
        formatter.render({"success": deleted, "id": post_id, "permanent": permanent, "message": message}, format=format_name)
    elif deleted:
        console.print(f"[green]✓ {message}[/green]")
    else:
        console.print(f"[red]✗ {message}[/red]")

    if not deleted:
        raise typer.Exit(1)
