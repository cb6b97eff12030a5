"""
HTTP transport for the entity REST client.

The REST client only needs "send this verb to this path, give me the body
text back"; anything implementing HttpTransport will do. RequestsTransport is
the production implementation over a `requests.Session`.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol, runtime_checkable

import requests

from entity_rest.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class HttpTransport(Protocol):
    """
    Path-and-verb invocation returning the raw response body.

    Implementations raise on network failures and non-success statuses.
    """

    def get(self, path: str) -> str: ...

    def post(self, path: str, body: str) -> str: ...

    def put(self, path: str, body: str) -> str: ...

    def delete(self, path: str) -> str: ...

    def close(self) -> None: ...


class RequestsTransport:
    """
    HttpTransport over a `requests.Session`.

    Parameters
    ----------
    base_url : str
        Server URL including the API prefix; request paths are appended to it.
    timeout : float | None
        Per-request timeout in seconds passed to requests.
    session : requests.Session | None
        Session to use. A session passed in is not closed by `close()`.
    charset : str
        Encoding of request bodies, and of response bodies that declare none.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        charset: str = "utf-8",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.charset = charset
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    def _request(self, method: str, path: str, body: Optional[str] = None) -> str:
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {"Accept": "text/plain, application/json"}
        data = None
        if body is not None:
            headers["Content-Type"] = f"text/plain; charset={self.charset}"
            data = body.encode(self.charset)
        response = self._session.request(
            method, url, data=data, headers=headers, timeout=self.timeout
        )
        log.debug(
            f"{method} {url} -> {response.status_code}",
            extra={"method": method, "url": url, "status": response.status_code},
        )
        response.raise_for_status()
        if "charset" not in response.headers.get("Content-Type", "").lower():
            response.encoding = self.charset
        return response.text

    def get(self, path: str) -> str:
        return self._request("GET", path)

    def post(self, path: str, body: str) -> str:
        return self._request("POST", path, body)

    def put(self, path: str, body: str) -> str:
        return self._request("PUT", path, body)

    def delete(self, path: str) -> str:
        return self._request("DELETE", path)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()


__all__ = ["HttpTransport", "RequestsTransport"]
