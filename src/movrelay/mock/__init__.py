"""In-process mock HTTP server and stub rules."""

from movrelay.mock.server import MockServer, RecordedRequest
from movrelay.mock.stubs import (
    CREATED_POST_ID,
    UPDATED_TITLE,
    StubRule,
    json_stub,
    jsonplaceholder_stubs,
)

__all__ = [
    "CREATED_POST_ID",
    "UPDATED_TITLE",
    "MockServer",
    "RecordedRequest",
    "StubRule",
    "json_stub",
    "jsonplaceholder_stubs",
]
