"""Pydantic models describing post-loader configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_BASE_URL = "http://127.0.0.1:9999"


class EndpointPaths(BaseModel):
    """Path templates of the REST endpoints, relative to ``base_url``."""

    posts: str = "/api/slow/posts"
    comments: str = "/api/slow/posts/{post_id}/comments"
    author: str = "/api/authors/{author_id}"

    @model_validator(mode="after")
    def _validate_placeholders(self) -> "EndpointPaths":
        if "{post_id}" not in self.comments:
            raise ValueError("comments path must contain a {post_id} placeholder")
        if "{author_id}" not in self.author:
            raise ValueError("author path must contain an {author_id} placeholder")
        return self


class LoaderConfig(BaseModel):
    """Connection and runtime settings for a load run."""

    base_url: str = DEFAULT_BASE_URL
    connect_timeout: float = 30.0
    read_timeout: float = 30.0
    wait_timeout: float = Field(
        default=30.0,
        description="Seconds the CLI waits for a background run before giving up.",
    )
    log_http_bodies: bool = False
    endpoints: EndpointPaths = Field(default_factory=EndpointPaths)

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalise_base_url(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return text.rstrip("/")

    @field_validator("connect_timeout", "read_timeout", "wait_timeout")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be greater than 0")
        return value

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def posts_url(self) -> str:
        return self.url_for(self.endpoints.posts)

    def comments_url(self, post_id: int) -> str:
        return self.url_for(self.endpoints.comments.format(post_id=post_id))

    def author_url(self, author_id: int) -> str:
        return self.url_for(self.endpoints.author.format(author_id=author_id))


__all__ = ["DEFAULT_BASE_URL", "EndpointPaths", "LoaderConfig"]
