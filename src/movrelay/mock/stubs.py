"""Stub rules for the mock HTTP server."""

import json
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Fixed values returned by the JSONPlaceholder stubs
CREATED_POST_ID = 101
UPDATED_TITLE = "updated"

JSON_HEADERS = {"Content-Type": "application/json"}


class StubRule(BaseModel):
    """A fixed request-pattern-to-response mapping."""

    model_config = ConfigDict(frozen=True)

    method: str

    # Exactly one of these must be set
    url_equal_to: Optional[str] = None  # path plus query string, exact
    url_path_matching: Optional[str] = None  # regex, must match the whole path

    status: int = Field(default=200, ge=100, le=599)
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        return v.upper()

    @field_validator("url_path_matching")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid path pattern {v!r}: {e}") from e
        return v

    @model_validator(mode="after")
    def check_single_url_pattern(self) -> "StubRule":
        if (self.url_equal_to is None) == (self.url_path_matching is None):
            raise ValueError("Set exactly one of url_equal_to or url_path_matching")
        return self

    @property
    def pattern(self) -> str:
        """Human-readable URL pattern."""
        return self.url_equal_to or f"~{self.url_path_matching}"

    def matches(self, method: str, path: str, query: str = "") -> bool:
        """Check whether a request is answered by this rule."""
        if method.upper() != self.method:
            return False

        if self.url_equal_to is not None:
            url = f"{path}?{query}" if query else path
            return url == self.url_equal_to

        return re.fullmatch(self.url_path_matching, path) is not None


def json_stub(
    method: str,
    body: Any,
    status: int = 200,
    url: Optional[str] = None,
    path_pattern: Optional[str] = None,
) -> StubRule:
    """Build a rule answering with a JSON body."""
    return StubRule(
        method=method,
        url_equal_to=url,
        url_path_matching=path_pattern,
        status=status,
        headers=JSON_HEADERS,
        body=json.dumps(body, separators=(",", ":")),
    )


def jsonplaceholder_stubs() -> list[StubRule]:
    """Stubs imitating JSONPlaceholder's posts resource."""
    return [
        json_stub("POST", {"id": CREATED_POST_ID}, status=201, url="/posts"),
        json_stub("PATCH", {"title": UPDATED_TITLE}, status=200, path_pattern=r"/posts/\d+"),
        StubRule(method="DELETE", url_path_matching=r"/posts/\d+", status=200),
    ]
