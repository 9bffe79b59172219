"""Models for the JSONPlaceholder-style posts resource."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreatedPost(BaseModel):
    """Reply to ``POST /posts``."""

    model_config = ConfigDict(extra="allow")

    id: int


class UpdatedPost(BaseModel):
    """Reply to ``PATCH /posts/{id}``."""

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def scalar_title_as_text(cls, v: Any) -> Any:
        """Numbers and booleans are read as their JSON text."""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v
