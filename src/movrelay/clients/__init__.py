"""API clients for external services."""

from movrelay.clients.base import BaseClient
from movrelay.clients.posts import PostsClient
from movrelay.clients.tmdb import TMDbClient

__all__ = [
    "BaseClient",
    "PostsClient",
    "TMDbClient",
]
