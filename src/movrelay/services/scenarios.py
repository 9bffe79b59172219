"""Read-from-TMDb, write-to-mock scenarios."""

from typing import Optional

from loguru import logger

from movrelay.clients.posts import PostsClient
from movrelay.clients.tmdb import TMDbClient
from movrelay.core.config import Settings
from movrelay.models.report import ScenarioReport


class ScenarioRunner:
    """Runs the read/write scenarios as straight-line call sequences.

    Every step validates its response before the next one runs, so the first
    unexpected status or missing field aborts the scenario with a
    ``ValidationFailure``.
    """

    TITLE_SUFFIX = " - updated"
    DEFAULT_QUERY = "matrix"

    def __init__(self, tmdb: TMDbClient, posts: PostsClient):
        """
        Initialize runner.

        Args:
            tmdb: Client for the remote reads
            posts: Client for the writes (normally pointed at the mock server)
        """
        self.tmdb = tmdb
        self.posts = posts

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        posts_base_url: str,
        tmdb_base_url: Optional[str] = None,
    ) -> "ScenarioRunner":
        """Build clients from settings; fails if the TMDb API key is missing."""
        tmdb = TMDbClient.from_settings(settings, base_url=tmdb_base_url)
        posts = PostsClient(base_url=posts_base_url, timeout=settings.http_timeout)
        return cls(tmdb=tmdb, posts=posts)

    async def fetch_and_round_trip(self) -> ScenarioReport:
        """Now playing -> POST -> PATCH title -> DELETE."""
        movie = await self.tmdb.first_now_playing()
        report = ScenarioReport(scenario="now_playing_round_trip", movie=movie.model_copy())
        report.add_step("now_playing", "GET", TMDbClient.NOW_PLAYING_PATH, 200)

        created = await self.posts.create_post(movie)
        report.post_id = created.id
        report.add_step("create", "POST", PostsClient.POSTS_PATH, 201)

        movie.append_to_title(self.TITLE_SUFFIX)
        post_path = f"{PostsClient.POSTS_PATH}/{created.id}"
        updated = await self.posts.update_post(created.id, movie)
        report.updated_title = updated.title
        report.add_step("update", "PATCH", post_path, 200)

        status = await self.posts.delete_post(created.id)
        report.add_step("delete", "DELETE", post_path, status)

        logger.info(
            f"Scenario {report.scenario}: {movie.tmdb_id} -> post {created.id}, "
            f"statuses={report.status_codes}"
        )
        return report

    async def search_and_post(self, query: str = DEFAULT_QUERY) -> ScenarioReport:
        """Search -> POST first result."""
        movie = await self.tmdb.first_search_result(query)
        report = ScenarioReport(scenario="search_and_post", movie=movie)
        report.add_step("search", "GET", TMDbClient.SEARCH_MOVIE_PATH, 200)

        created = await self.posts.create_post(movie)
        report.post_id = created.id
        report.add_step("create", "POST", PostsClient.POSTS_PATH, 201)

        logger.info(
            f"Scenario {report.scenario}: '{query}' -> {movie.display_title} -> post {created.id}"
        )
        return report

    async def close(self) -> None:
        """Close both HTTP clients."""
        await self.tmdb.close()
        await self.posts.close()
