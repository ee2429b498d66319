from __future__ import annotations

from typing import Any

import httpx


class DummyHTTPResponse:
    def __init__(
        self,
        status_code: int,
        json_data: Any = None,
        text: str = "",
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self._json_data = json_data
        self.text = text
        self.content = content or b""
        self.headers = headers or {}

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON data")
        return self._json_data


class DummyAsyncClient:
    """Stand-in for ``httpx.AsyncClient`` replaying queued responses per verb.

    Queue entries may be exceptions, which are raised instead of returned.
    Every call is appended to ``calls`` as ``(method, url, kwargs)`` and every
    construction to ``client_kwargs``.
    """

    def __init__(
        self,
        *,
        post_queue: list[Any] | None = None,
        get_queue: list[Any] | None = None,
        head_queue: list[Any] | None = None,
    ) -> None:
        self.queues = {
            "POST": post_queue if post_queue is not None else [],
            "GET": get_queue if get_queue is not None else [],
            "HEAD": head_queue if head_queue is not None else [],
        }
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.client_kwargs: list[dict[str, Any]] = []

    def __call__(self, *args, **kwargs) -> "DummyAsyncClient":
        self.client_kwargs.append(kwargs)
        return self

    async def __aenter__(self) -> "DummyAsyncClient":  # pragma: no cover - helper
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:  # pragma: no cover - helper
        return None

    def _next(self, method: str, url: str, kwargs: dict[str, Any]) -> DummyHTTPResponse:
        self.calls.append((method, url, kwargs))
        queue = self.queues[method]
        if not queue:
            raise RuntimeError(f"No {method} responses queued for {url}")
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def post(self, url: str, **kwargs: Any) -> DummyHTTPResponse:
        return self._next("POST", url, kwargs)

    async def get(self, url: str, **kwargs: Any) -> DummyHTTPResponse:
        return self._next("GET", url, kwargs)

    async def head(self, url: str, **kwargs: Any) -> DummyHTTPResponse:
        return self._next("HEAD", url, kwargs)

    def urls(self, method: str) -> list[str]:
        return [url for verb, url, _ in self.calls if verb == method]


def install(monkeypatch, client: DummyAsyncClient) -> DummyAsyncClient:
    """Route every ``httpx.AsyncClient(...)`` construction to ``client``."""
    monkeypatch.setattr(httpx, "AsyncClient", client)
    return client


def connect_error(url: str = "https://example.test") -> httpx.ConnectError:
    return httpx.ConnectError("connection refused", request=httpx.Request("GET", url))
