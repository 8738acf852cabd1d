#!/usr/bin/env python3
"""
client.py - Async client for the relay

Opens the ``/sse`` push channel, waits for the ``started`` status, then posts
request envelopes to ``/mcp/{session_id}`` and matches the ``mcp-message``
responses that arrive on the stream to the pending requests by id.

    async with RelayClient("http://localhost:3000") as client:
        await client.initialize()
        result = await client.call_tool("calculator", {"operation": "add", "a": 5, "b": 3})
"""

import asyncio
import functools
import itertools
import logging
from typing import Any

import httpx
import orjson

from .constants import (
    CLIENT_CONNECT_TIMEOUT,
    CLIENT_REQUEST_TIMEOUT,
    CONTENT_TYPE_JSON,
    EVENT_DISCONNECTED,
    EVENT_MCP_MESSAGE,
    EVENT_SERVER_STATUS,
    MCP_PROTOCOL_VERSION,
    STATUS_ERROR,
    STATUS_STARTED,
    McpMethod,
)
from .types import RequestEnvelope

logger = logging.getLogger(__name__)


class RelayClientError(Exception):
    """Connection-level failure: timeout, rejected session or closed stream."""


class RelayRequestError(RelayClientError):
    """The server answered a request with an error envelope."""

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.data = data
        super().__init__(message)


class RelayClient:
    """One session against a relay server."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        session_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        connect_timeout: float = CLIENT_CONNECT_TIMEOUT,
        request_timeout: float = CLIENT_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session_id = session_id
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout
        self.server_info: dict[str, Any] | None = None

        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._reader: asyncio.Task[None] | None = None
        self._started: asyncio.Future[dict[str, Any]] | None = None
        self._pending: dict[Any, asyncio.Future[Any]] = {}
        self._posts: set[asyncio.Task[None]] = set()
        self._ids = itertools.count(1)
        self._connected = False

    async def __aenter__(self) -> "RelayClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def pending_requests(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Channel
    # ------------------------------------------------------------------

    async def connect(self) -> dict[str, Any]:
        """Open the push channel and wait for the server to report ``started``."""
        if self._connected:
            return self.server_info or {}

        loop = asyncio.get_running_loop()
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            transport=self._transport,
            timeout=httpx.Timeout(self.request_timeout),
        )
        self._started = loop.create_future()
        self._reader = asyncio.create_task(self._read_events())

        try:
            self.server_info = await asyncio.wait_for(asyncio.shield(self._started), self.connect_timeout)
        except asyncio.TimeoutError:
            await self.close()
            raise RelayClientError(f"Connection timeout after {self.connect_timeout:g}s") from None
        except RelayClientError:
            await self.close()
            raise

        self._connected = True
        logger.info(f"Connected to {self.base_url} as session {self.session_id}")
        return self.server_info

    async def _read_events(self) -> None:
        assert self._http is not None
        params = {"sessionId": self.session_id} if self.session_id else None
        try:
            async with self._http.stream("GET", "/sse", params=params, timeout=httpx.Timeout(None)) as response:
                if response.is_error:
                    raise RelayClientError(f"SSE connection failed: HTTP {response.status_code}")

                event, data_lines = None, []
                async for line in response.aiter_lines():
                    if not line:
                        if data_lines:
                            self._dispatch(event, "\n".join(data_lines))
                        event, data_lines = None, []
                    elif line.startswith(":"):
                        continue
                    elif line.startswith("event:"):
                        event = line[6:].strip()
                    elif line.startswith("data:"):
                        data_lines.append(line[5:].removeprefix(" "))

            self._fail_all(RelayClientError("Push channel closed"))
        except asyncio.CancelledError:
            self._fail_all(RelayClientError("Client closed"))
            raise
        except Exception as e:
            logger.warning(f"Push channel failed: {e!r}")
            self._fail_all(e if isinstance(e, RelayClientError) else RelayClientError(str(e)))
        finally:
            self._connected = False

    def _dispatch(self, event: str | None, data: str) -> None:
        try:
            payload = orjson.loads(data)
        except orjson.JSONDecodeError:
            logger.warning(f"Ignoring malformed {event} event: {data!r}")
            return

        if event == EVENT_SERVER_STATUS:
            self._on_status(payload)
        elif event == EVENT_MCP_MESSAGE:
            self._on_message(payload)
        elif event == EVENT_DISCONNECTED:
            logger.info("Server disconnected the session")
        else:
            logger.debug(f"Event {event}: {payload}")

    def _on_status(self, payload: dict[str, Any]) -> None:
        status = payload.get("status")
        if self._started is None or self._started.done():
            return
        if status == STATUS_STARTED:
            self.session_id = payload.get("sessionId", self.session_id)
            self._started.set_result(payload.get("serverInfo") or {})
        elif status == STATUS_ERROR:
            self._started.set_exception(RelayClientError(payload.get("message", "Server failed to start")))

    def _on_message(self, payload: Any) -> None:
        if not isinstance(payload, dict):
            return
        future = self._pending.pop(payload.get("id"), None)
        if future is None or future.done():
            logger.debug(f"Unmatched response: {payload}")
            return
        error = payload.get("error")
        if error is not None:
            future.set_exception(RelayRequestError(error.get("code"), error.get("message", ""), error.get("data")))
        else:
            future.set_result(payload.get("result"))

    def _fail_all(self, error: Exception) -> None:
        if self._started is not None and not self._started.done():
            self._started.set_exception(error)
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _post(self, envelope: RequestEnvelope) -> None:
        if self._http is None or self.session_id is None:
            raise RelayClientError("Not connected")
        try:
            response = await self._http.post(
                f"/mcp/{self.session_id}",
                content=orjson.dumps(envelope.to_dict()),
                headers={"Content-Type": CONTENT_TYPE_JSON},
            )
        except httpx.HTTPError as e:
            raise RelayClientError(f"Submission failed: {e!r}") from e
        if response.status_code == 404:
            raise RelayClientError(f"Session {self.session_id} not found")
        if response.is_error:
            raise RelayClientError(f"Submission failed: HTTP {response.status_code}: {response.text}")

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a request and wait for its response on the push channel."""
        if not self._connected:
            raise RelayClientError("Not connected")

        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        envelope = RequestEnvelope(id=request_id, method=method, params=params or {})

        # One deadline covers the submission and the pushed response
        post = asyncio.create_task(self._post(envelope))
        self._posts.add(post)
        post.add_done_callback(self._posts.discard)
        post.add_done_callback(functools.partial(self._on_post_done, future))

        try:
            return await asyncio.wait_for(future, self.request_timeout)
        except asyncio.TimeoutError:
            post.cancel()
            raise RelayClientError(f"Request timeout: {method} (id {request_id})") from None
        finally:
            self._pending.pop(request_id, None)

    @staticmethod
    def _on_post_done(future: asyncio.Future[Any], post: asyncio.Task[None]) -> None:
        if post.cancelled():
            return
        error = post.exception()
        if error is not None and not future.done():
            future.set_exception(error if isinstance(error, RelayClientError) else RelayClientError(str(error)))

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification; no response is expected."""
        await self._post(RequestEnvelope(method=method, params=params or {}))

    async def initialize(self, client_info: dict[str, Any] | None = None) -> dict[str, Any]:
        result = await self.request(
            McpMethod.INITIALIZE,
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": client_info or {"name": "mcp-sse-relay-client", "version": "1.0.0"},
            },
        )
        await self.notify(McpMethod.INITIALIZED)
        return result

    async def ping(self) -> Any:
        return await self.request(McpMethod.PING)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        return await self.request(McpMethod.TOOLS_CALL, {"name": name, "arguments": arguments or {}})

    async def read_resource(self, uri: str) -> Any:
        return await self.request(McpMethod.RESOURCES_READ, {"uri": uri})

    async def close(self) -> None:
        """Stop reading, fail outstanding requests and release the HTTP client."""
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        self._fail_all(RelayClientError("Client closed"))
        posts, self._posts = list(self._posts), set()
        for post in posts:
            post.cancel()
        await asyncio.gather(*posts, return_exceptions=True)
        if self._started is not None and self._started.done() and not self._started.cancelled():
            # Retrieve so an unobserved failure is not reported at garbage collection
            self._started.exception()
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        self._connected = False
