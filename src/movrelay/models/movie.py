"""Movie models."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field


class Movie(BaseModel):
    """Movie as returned by TMDb list and search endpoints."""

    title: str = Field(min_length=1)
    year: Optional[int] = None

    # External IDs
    tmdb_id: Optional[int] = None

    # Metadata
    original_title: Optional[str] = None
    overview: Optional[str] = None
    genre_ids: list[int] = Field(default_factory=list)
    original_language: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    popularity: Optional[float] = None
    adult: bool = False

    # Release info
    release_date: Optional[date] = None

    # Images
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None

    @property
    def display_title(self) -> str:
        """Get display title with year."""
        if self.year:
            return f"{self.title} ({self.year})"
        return self.title

    def append_to_title(self, suffix: str) -> "Movie":
        """Concatenate suffix onto the title in place and return self."""
        self.title = f"{self.title}{suffix}"
        return self

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the TMDb JSON shape (``id`` key, ISO dates, no nulls)."""
        payload = self.model_dump(mode="json", exclude={"tmdb_id", "year"}, exclude_none=True)
        if self.tmdb_id is not None:
            payload = {"id": self.tmdb_id, **payload}
        return payload
