"""Wire models for the blog REST API and the aggregated results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable model reading the server's camelCase payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Attachment(WireModel):
    url: str
    description: str | None = None
    type: str | None = None


class Post(WireModel):
    id: int
    author_id: int
    content: str = ""
    # Epoch seconds from the test server; ISO strings are kept as given
    published: int | str | None = None
    likes: int = 0
    liked_by_me: bool = False
    attachment: Attachment | None = None


class Comment(WireModel):
    id: int
    author_id: int
    post_id: int | None = None
    content: str = ""
    published: int | str | None = None
    likes: int = 0
    liked_by_me: bool = False


class Author(WireModel):
    id: int
    name: str
    avatar: str = ""


@dataclass(slots=True, frozen=True)
class CommentWithAuthor:
    """A comment paired with its resolved author (``None`` when not loaded)."""

    comment: Comment
    author: Author | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "comment": self.comment.model_dump(mode="json", by_alias=True),
            "author": self.author.model_dump(mode="json", by_alias=True) if self.author else None,
        }


@dataclass(slots=True, frozen=True)
class PostWithDetails:
    """A post with its resolved author and ordered comments."""

    post: Post
    author: Author | None = None
    comments: list[CommentWithAuthor] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "post": self.post.model_dump(mode="json", by_alias=True),
            "author": self.author.model_dump(mode="json", by_alias=True) if self.author else None,
            "comments": [item.to_dict() for item in self.comments],
        }


__all__ = [
    "Attachment",
    "Author",
    "Comment",
    "CommentWithAuthor",
    "Post",
    "PostWithDetails",
    "WireModel",
]
