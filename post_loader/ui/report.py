"""Console report of aggregated posts."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from ..engine import Author, CommentWithAuthor, PostWithDetails

LIKED_MARKER = "👍"


@dataclass(slots=True)
class ReportSummary:
    posts: int
    comments: int
    post_authors_loaded: int
    comment_authors_loaded: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def summarise(results: Sequence[PostWithDetails]) -> ReportSummary:
    comments = [item for result in results for item in result.comments]
    return ReportSummary(
        posts=len(results),
        comments=len(comments),
        post_authors_loaded=sum(1 for result in results if result.author is not None),
        comment_authors_loaded=sum(1 for item in comments if item.author is not None),
    )


def format_published(value: int | str | None) -> str:
    if value is None:
        return "-"
    if isinstance(value, int):
        moment = datetime.fromtimestamp(value, tz=timezone.utc)
        return moment.strftime("%Y-%m-%d %H:%M UTC")
    return value


def _likes(count: int, liked_by_me: bool) -> str:
    return f"{count} {LIKED_MARKER}" if liked_by_me else str(count)


def _author_lines(author: Author | None, author_id: int, indent: str) -> list[str]:
    if author is None:
        return [f"{indent}Author: id {author_id} [yellow](not loaded)[/yellow]"]
    return [
        f"{indent}Author: [bold]{escape(author.name)}[/bold] (id {author_id})",
        f"{indent}Avatar: {escape(author.avatar or '-')}",
    ]


def _render_comment(console: Console, index: int, item: CommentWithAuthor) -> None:
    comment = item.comment
    indent = "      "
    console.print(f"   {index}. Comment id {comment.id}")
    for line in _author_lines(item.author, comment.author_id, indent):
        console.print(line)
    console.print(f"{indent}{comment.content}", markup=False)
    console.print(f"{indent}Likes: {_likes(comment.likes, comment.liked_by_me)}")


def _render_post(console: Console, index: int, result: PostWithDetails) -> None:
    post = result.post
    console.print(f"\n[bold cyan]Post #{index}[/bold cyan] (id {post.id})")
    for line in _author_lines(result.author, post.author_id, "   "):
        console.print(line)
    console.print("   Content: ", end="")
    console.print(post.content, markup=False)
    console.print(f"   Published: {format_published(post.published)}")
    console.print(f"   Likes: {_likes(post.likes, post.liked_by_me)}")
    if post.attachment is not None:
        console.print(f"   Attachment: {post.attachment.url}", markup=False)
        console.print(f"   Description: {post.attachment.description or '-'}", markup=False)
        console.print(f"   Type: {post.attachment.type or '-'}", markup=False)
    if result.comments:
        console.print(f"\n   [magenta]Comments ({len(result.comments)})[/magenta]")
        for comment_index, item in enumerate(result.comments, start=1):
            _render_comment(console, comment_index, item)
    else:
        console.print("\n   [dim]No comments[/dim]")


def render_summary_table(summary: ReportSummary) -> Table:
    table = Table(title="Summary", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Posts", str(summary.posts))
    table.add_row("Comments", str(summary.comments))
    table.add_row("Post authors loaded", f"{summary.post_authors_loaded} of {summary.posts}")
    table.add_row(
        "Comment authors loaded",
        f"{summary.comment_authors_loaded} of {summary.comments}",
    )
    return table


def render_report(results: Sequence[PostWithDetails], console: Console | None = None) -> ReportSummary:
    """Print every post with its author and comments, then the statistics."""

    console = console or Console()
    console.print(Rule("Results"))
    summary = summarise(results)
    if not results:
        console.print("No posts to display.", style="yellow")
        return summary
    for index, result in enumerate(results, start=1):
        _render_post(console, index, result)
    console.print()
    console.print(render_summary_table(summary))
    return summary


__all__ = [
    "ReportSummary",
    "format_published",
    "render_report",
    "render_summary_table",
    "summarise",
]
