"""post-loader: fetch posts, comments and authors from a blog REST server."""

__version__ = "0.1.0"
