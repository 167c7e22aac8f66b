"""Lightweight HTTP client for the graph render service.

The client keeps dependencies minimal by defaulting to the standard library
for HTTP requests, while allowing a drop-in HTTP client (such as
``fastapi.testclient.TestClient``) to be supplied for in-process testing.
"""
from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict


class ServiceError(RuntimeError):
    """Raised when the service returns a non-success response."""


@dataclass
class _Response:
    status_code: int
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if not self.content:
            return {}
        return json.loads(self.content)


class _UrllibClient:
    """Simple HTTP client backed by urllib to avoid third-party deps."""

    def request(self, method: str, url: str, *, headers: Dict[str, str] | None = None, content: bytes | None = None) -> _Response:
        req = urllib.request.Request(url, data=content, headers=headers or {}, method=method.upper())
        try:
            with urllib.request.urlopen(req) as resp:
                return _Response(status_code=resp.getcode(), content=resp.read())
        except urllib.error.HTTPError as exc:  # pragma: no cover - exercised via client tests
            return _Response(status_code=exc.code, content=exc.read())


class RenderClient:
    """Convenience wrapper over the render endpoints.

    Usage:
        client = RenderClient("http://localhost:8080")
        rendered = client.render(open("graph.txt").read())
        svg = client.fetch(rendered["id"])
    """

    def __init__(self, base_url: str, http_client: Any | None = None):
        self.base_url = base_url.rstrip("/")
        self.http = http_client or _UrllibClient()

    # Public API helpers -------------------------------------------------
    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health").json()

    def render(self, graph: str) -> Dict[str, Any]:
        body = json.dumps({"graph": graph}).encode("utf-8")
        return self._request("POST", "/api/render", content=body, content_type="application/json").json()

    def render_raw(self, graph: str | bytes) -> str:
        """POST the graph to ``/raw`` and return the advertised view URL."""

        body = graph.encode("utf-8") if isinstance(graph, str) else graph
        text = self._request("POST", "/raw", content=body, content_type="text/plain").text.strip()
        return text.removeprefix("Open:").strip()

    def fetch(self, identifier: str) -> bytes:
        return self._request("GET", f"/view/{identifier}").content

    # Internal helpers ---------------------------------------------------
    def _request(self, method: str, path: str, *, content: bytes | None = None, content_type: str | None = None) -> _Response:
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if content_type:
            headers["content-type"] = content_type

        response = self.http.request(method, url, headers=headers, content=content)

        status = getattr(response, "status_code", 0)
        raw = getattr(response, "content", b"")
        if isinstance(raw, str):
            raw = raw.encode("utf-8")

        normalized = _Response(status_code=status, content=raw)
        if normalized.status_code >= 400:
            raise ServiceError(f"request failed ({normalized.status_code}): {normalized.text}")
        return normalized
