"""Fail-fast response checks shared by clients, scenarios and tests."""

import re
from typing import Any, Iterable

import httpx

from movrelay.core.exceptions import (
    EmptyResultsError,
    MissingFieldError,
    UnexpectedStatusError,
    ValidationFailure,
)

_PATH_TOKEN = re.compile(r"([A-Za-z_][\w-]*)|\[(\d+)\]")


def assert_status_code(response: httpx.Response, expected: int, message: str = "") -> None:
    """Fail unless the response has exactly the expected status."""
    assert_status_in(response, (expected,), message)


def assert_status_in(
    response: httpx.Response,
    allowed: Iterable[int],
    message: str = "",
) -> None:
    """Fail unless the response status is one of ``allowed``."""
    allowed = tuple(allowed)
    if response.status_code not in allowed:
        raise UnexpectedStatusError(response.status_code, allowed, message)


def response_json(response: httpx.Response) -> Any:
    """Decode the response body as JSON or fail."""
    try:
        return response.json()
    except ValueError as e:
        raise ValidationFailure(
            f"Response body is not JSON (status {response.status_code}): {e}"
        ) from e


def _split_path(path: str) -> list[str | int]:
    tokens: list[str | int] = []
    for part in path.split("."):
        matched = 0
        for match in _PATH_TOKEN.finditer(part):
            key, index = match.groups()
            tokens.append(key if key is not None else int(index))
            matched += len(match.group(0))
        if matched != len(part):
            raise ValueError(f"Invalid field path: {path!r}")
    return tokens


def get_field(data: Any, path: str) -> Any:
    """
    Look up a dotted/indexed field such as ``results[0].title``.

    Returns None when any step of the path is missing.
    """
    current = data
    for token in _split_path(path):
        if isinstance(token, int):
            if not isinstance(current, list) or token >= len(current):
                return None
            current = current[token]
        else:
            if not isinstance(current, dict) or token not in current:
                return None
            current = current[token]
    return current


def require_field(data: Any, path: str, message: str = "") -> Any:
    """Return the field at ``path`` or fail if it is missing or null."""
    value = get_field(data, path)
    if value is None:
        raise MissingFieldError(message or f"Expected field '{path}' to be present")
    return value


def first_result(data: Any, key: str = "results", message: str = "") -> dict[str, Any]:
    """Return the first element of a results list or fail if there is none."""
    results = get_field(data, key)
    if not isinstance(results, list) or not results:
        raise EmptyResultsError(message or f"Expected at least one entry in '{key}'")
    return results[0]


def require_positive_id(value: Any, message: str = "") -> int:
    """Fail unless value is a positive integer identifier."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationFailure(message or f"Expected a positive integer id, got {value!r}")
    return value
