"""Movie Relay - read movies from TMDb, write them to a mocked JSONPlaceholder."""

__version__ = "0.1.0"
