"""Shared fixtures: mock servers for the JSONPlaceholder writes and TMDb reads."""

from typing import Iterator

import pytest

from movrelay.mock.server import MockServer
from movrelay.mock.stubs import json_stub, jsonplaceholder_stubs
from tests.fixtures.tmdb_responses import NOW_PLAYING_RESPONSE, SEARCH_MATRIX_RESPONSE


@pytest.fixture(scope="session")
def mock_server() -> Iterator[MockServer]:
    """Mock JSONPlaceholder shared by the whole test session."""
    server = MockServer()
    for rule in jsonplaceholder_stubs():
        server.stub_for(rule)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def fresh_mock_server() -> Iterator[MockServer]:
    """Mock server answering both TMDb reads and JSONPlaceholder writes."""
    server = MockServer()
    for rule in jsonplaceholder_stubs():
        server.stub_for(rule)
    server.stub_for(json_stub("GET", NOW_PLAYING_RESPONSE, path_pattern=r"/3/movie/now_playing"))
    server.stub_for(json_stub("GET", SEARCH_MATRIX_RESPONSE, path_pattern=r"/3/search/movie"))
    server.start()
    yield server
    server.stop()
