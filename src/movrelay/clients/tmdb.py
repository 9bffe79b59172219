"""TMDb (The Movie Database) API client."""

from datetime import date
from typing import Any, Optional

from loguru import logger

from movrelay.clients.base import BaseClient
from movrelay.core.config import Settings
from movrelay.core.exceptions import MissingFieldError
from movrelay.models.movie import Movie
from movrelay.validation import assert_status_code, first_result, response_json


class TMDbClient(BaseClient):
    """Read-only client for TMDb API v3."""

    BASE_URL = "https://api.themoviedb.org"

    NOW_PLAYING_PATH = "/3/movie/now_playing"
    POPULAR_PATH = "/3/movie/popular"
    SEARCH_MOVIE_PATH = "/3/search/movie"

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        language: Optional[str] = None,
        timeout: float = BaseClient.DEFAULT_TIMEOUT,
    ):
        """
        Initialize TMDb client.

        Args:
            api_key: TMDb API key (sent as the ``api_key`` query parameter)
            base_url: API root, without the ``/3`` version prefix
            language: Optional language for results
            timeout: Request timeout in seconds
        """
        super().__init__(base_url=base_url, api_key=api_key, timeout=timeout)
        self.language = language

    @classmethod
    def from_settings(cls, settings: Settings, base_url: Optional[str] = None) -> "TMDbClient":
        """Build a client from settings; fails if the API key is missing."""
        tmdb = settings.tmdb
        return cls(
            api_key=settings.require_api_key(),
            base_url=base_url or tmdb.base_url,
            language=tmdb.language,
            timeout=settings.http_timeout,
        )

    def _params(self, **kwargs) -> dict[str, Any]:
        """Build request params with API key and language."""
        params: dict[str, Any] = {"api_key": self.api_key}
        if self.language:
            params["language"] = self.language
        params.update(kwargs)
        return params

    def _log_items(
        self,
        source: str,
        items: list[Movie],
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log fetched items with their IDs and titles."""
        if params:
            filtered_params = {k: v for k, v in params.items() if k != "api_key"}
            logger.info(f"[TMDb] {source}: params={filtered_params}")

        logger.info(f"[TMDb] {source}: fetched {len(items)} items")
        for item in items:
            logger.debug(f"  - [tmdb:{item.tmdb_id}] {item.display_title}")

    async def _get_page(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        response = await self.get(endpoint, params=params)
        assert_status_code(response, 200, f"GET {endpoint}")
        return response_json(response)

    async def _fetch_paginated_results(
        self,
        endpoint: str,
        limit: int,
        params: Optional[dict[str, Any]] = None,
    ) -> list[Movie]:
        """Fetch paginated TMDb endpoint results up to limit."""
        all_results: list[Movie] = []
        page = 1
        base_params = params.copy() if params else {}

        while len(all_results) < limit:
            data = await self._get_page(endpoint, self._params(page=page, **base_params))
            results = data.get("results") or []
            total_pages = data.get("total_pages", 1)

            for item in results:
                if len(all_results) >= limit:
                    break
                all_results.append(self._parse_movie(item))

            if page >= total_pages or not results:
                break
            page += 1

        return all_results

    # =========================================================================
    # Lists
    # =========================================================================

    async def get_now_playing(self, limit: int = 20) -> list[Movie]:
        """Get movies currently in theatres."""
        movies = await self._fetch_paginated_results(self.NOW_PLAYING_PATH, limit=limit)
        self._log_items("Now Playing", movies, self._params())
        return movies

    async def get_popular_movies(self, limit: int = 20) -> list[Movie]:
        """Get popular movies."""
        movies = await self._fetch_paginated_results(self.POPULAR_PATH, limit=limit)
        self._log_items("Popular Movies", movies, self._params())
        return movies

    async def first_now_playing(self) -> Movie:
        """Get the first now-playing movie, failing if the list is empty."""
        params = self._params()
        data = await self._get_page(self.NOW_PLAYING_PATH, params)
        movie = self._parse_movie(
            first_result(data, message="Expect at least one now_playing movie")
        )
        self._log_items("Now Playing (first)", [movie], params)
        return movie

    # =========================================================================
    # Search
    # =========================================================================

    async def search_movies(
        self,
        query: str,
        year: Optional[int] = None,
        limit: int = 10,
    ) -> list[Movie]:
        """Search for movies."""
        params = self._params(query=query)
        if year:
            params["year"] = year

        data = await self._get_page(self.SEARCH_MOVIE_PATH, params)
        movies = [self._parse_movie(item) for item in (data.get("results") or [])[:limit]]

        self._log_items(f"Search '{query}'", movies, params)
        return movies

    async def first_search_result(self, query: str) -> Movie:
        """Get the best search match, failing if nothing was found."""
        params = self._params(query=query)
        data = await self._get_page(self.SEARCH_MOVIE_PATH, params)
        movie = self._parse_movie(
            first_result(data, message=f"Expected search for '{query}' to return a movie")
        )
        self._log_items(f"Search '{query}' (first)", [movie], params)
        return movie

    # =========================================================================
    # Parsers
    # =========================================================================

    def _parse_movie(self, data: dict[str, Any]) -> Movie:
        """Parse movie from API response."""
        title = data.get("title")
        if not isinstance(title, str) or not title:
            raise MissingFieldError(f"TMDb movie {data.get('id')} has no title")

        release_date = None
        year = None
        if data.get("release_date"):
            try:
                release_date = date.fromisoformat(data["release_date"])
                year = release_date.year
            except ValueError:
                pass

        return Movie(
            title=title,
            year=year,
            tmdb_id=data.get("id"),
            original_title=data.get("original_title"),
            overview=data.get("overview"),
            genre_ids=data.get("genre_ids") or [],
            original_language=data.get("original_language"),
            vote_average=data.get("vote_average"),
            vote_count=data.get("vote_count"),
            popularity=data.get("popularity"),
            adult=bool(data.get("adult", False)),
            release_date=release_date,
            poster_path=data.get("poster_path"),
            backdrop_path=data.get("backdrop_path"),
        )
