"""In-process mock HTTP server answering from fixed stub rules.

The server is a FastAPI app with a single catch-all route, run by uvicorn on a
background thread. It binds its own socket so port 0 yields a free port that
is known before the first request is sent.
"""

import json
import socket
import threading
import time
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from movrelay.core.exceptions import MockServerError
from movrelay.mock.stubs import StubRule

HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class RecordedRequest(BaseModel):
    """A request received by the mock server."""

    method: str
    path: str
    query: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""

    def json_body(self) -> Any:
        """Decode the request body as JSON."""
        return json.loads(self.body)


class MockServer:
    """Mock HTTP server with WireMock-style stubs and a request journal."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 0,
        startup_timeout: float = 10.0,
    ):
        """
        Initialize mock server (not started).

        Args:
            host: Interface to bind
            port: Port to bind, 0 for a free port
            startup_timeout: Seconds to wait for uvicorn to come up
        """
        self.host = host
        self.requested_port = port
        self.startup_timeout = startup_timeout

        self._stubs: list[StubRule] = []
        self._journal: list[RecordedRequest] = []
        self._lock = threading.Lock()

        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None
        self._port: Optional[int] = None

        self.app = self._build_app()

    # =========================================================================
    # Stubs and journal
    # =========================================================================

    def stub_for(self, rule: StubRule) -> StubRule:
        """Register a stub. Later stubs take precedence over earlier ones."""
        with self._lock:
            self._stubs.append(rule)
        logger.debug(f"[Mock] Stub {rule.method} {rule.pattern} -> {rule.status}")
        return rule

    def reset(self) -> None:
        """Remove all stubs and forget recorded requests."""
        with self._lock:
            self._stubs.clear()
            self._journal.clear()

    @property
    def stubs(self) -> list[StubRule]:
        with self._lock:
            return list(self._stubs)

    @property
    def requests(self) -> list[RecordedRequest]:
        """Requests received so far, oldest first."""
        with self._lock:
            return list(self._journal)

    def find_requests(
        self,
        method: Optional[str] = None,
        path: Optional[str] = None,
    ) -> list[RecordedRequest]:
        """Recorded requests filtered by method and exact path."""
        return [
            req
            for req in self.requests
            if (method is None or req.method == method.upper())
            and (path is None or req.path == path)
        ]

    def _match(self, method: str, path: str, query: str) -> Optional[StubRule]:
        with self._lock:
            for rule in reversed(self._stubs):
                if rule.matches(method, path, query):
                    return rule
        return None

    # =========================================================================
    # ASGI app
    # =========================================================================

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="Movie Relay Mock",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

        @app.api_route("/{path:path}", methods=HTTP_METHODS)
        async def dispatch(request: Request) -> Response:
            return await self._handle(request)

        return app

    async def _handle(self, request: Request) -> Response:
        body = await request.body()
        recorded = RecordedRequest(
            method=request.method,
            path=request.url.path,
            query=request.url.query,
            headers=dict(request.headers),
            body=body.decode("utf-8", errors="replace"),
        )
        with self._lock:
            self._journal.append(recorded)

        rule = self._match(recorded.method, recorded.path, recorded.query)
        if rule is None:
            logger.warning(f"[Mock] No stub for {recorded.method} {recorded.path}")
            return JSONResponse(
                status_code=404,
                content={
                    "error": "No stub matched",
                    "method": recorded.method,
                    "path": recorded.path,
                },
            )

        logger.debug(f"[Mock] {recorded.method} {recorded.path} -> {rule.status}")
        return Response(content=rule.body, status_code=rule.status, headers=rule.headers)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def port(self) -> int:
        """Port the server is bound to."""
        if self._port is None:
            raise MockServerError("Mock server is not running")
        return self._port

    @property
    def base_url(self) -> str:
        """Root URL of the running server, e.g. ``http://127.0.0.1:54321``."""
        return f"http://{self.host}:{self.port}"

    def url(self, path: str) -> str:
        """Absolute URL for a path on this server."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def start(self) -> "MockServer":
        """Bind the socket and start uvicorn; blocks until it accepts requests."""
        if self._thread is not None:
            raise MockServerError("Mock server already started")

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.requested_port))
        except OSError as e:
            sock.close()
            raise MockServerError(
                f"Cannot bind mock server to {self.host}:{self.requested_port}: {e}"
            ) from e

        config = uvicorn.Config(
            self.app,
            log_level="warning",
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=server.run,
            kwargs={"sockets": [sock]},
            name="movrelay-mock-server",
            daemon=True,
        )
        thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not server.started:
            if not thread.is_alive() or time.monotonic() > deadline:
                server.should_exit = True
                thread.join(timeout=1.0)
                sock.close()
                raise MockServerError(
                    f"Mock server did not start within {self.startup_timeout}s"
                )
            time.sleep(0.01)

        self._server = server
        self._thread = thread
        self._socket = sock
        self._port = sock.getsockname()[1]
        logger.info(f"[Mock] Listening on {self.base_url}")
        return self

    def stop(self) -> None:
        """Stop the server and release the port. Safe to call twice."""
        if self._server is None or self._thread is None:
            return

        self._server.should_exit = True
        self._thread.join(timeout=self.startup_timeout)
        if self._thread.is_alive():
            logger.warning("[Mock] Server thread did not exit in time")
        if self._socket is not None:
            self._socket.close()

        logger.info(f"[Mock] Stopped server on port {self._port}")
        self._server = None
        self._thread = None
        self._socket = None
        self._port = None

    def __enter__(self) -> "MockServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
