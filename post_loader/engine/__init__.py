"""Engine components: fetch posts, resolve authors, aggregate results."""

from .aggregator import Aggregator
from .cache import AuthorCache, AuthorLookup
from .fetcher import DecodeError, FetchError, JsonFetcher, ProtocolError, TransportError
from .models import Attachment, Author, Comment, CommentWithAuthor, Post, PostWithDetails

__all__ = [
    "Aggregator",
    "Attachment",
    "Author",
    "AuthorCache",
    "AuthorLookup",
    "Comment",
    "CommentWithAuthor",
    "DecodeError",
    "FetchError",
    "JsonFetcher",
    "Post",
    "PostWithDetails",
    "ProtocolError",
    "TransportError",
]
