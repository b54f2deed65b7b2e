"""HTTP sender — POSTs push requests to a Loki ingestion endpoint."""

import logging
from typing import Protocol

import httpx

from loki_shipper.errors import TransportError
from loki_shipper.payload import PushRequest, encode_push_request

logger = logging.getLogger(__name__)

PUSH_PATH = "/loki/api/v1/push"


class Sender(Protocol):
    """Delivers one push request. Raises SerializationError or TransportError."""

    def send(self, request: PushRequest) -> int: ...

    def close(self) -> None: ...


class HTTPSender:
    """Sends push requests with a single POST per batch; no retries."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        client: httpx.Client | None = None,
    ):
        self._push_url = base_url.rstrip("/") + PUSH_PATH
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def push_url(self) -> str:
        return self._push_url

    def send(self, request: PushRequest) -> int:
        """POST the request. Returns the number of body bytes sent."""
        data = encode_push_request(request)

        try:
            response = self._client.post(self._push_url, content=data, headers=self._headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"send request failed: {exc}") from exc

        if response.status_code != httpx.codes.NO_CONTENT:
            raise TransportError(
                f"unexpected status code: {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug("Pushed %d bytes to %s", len(data), self._push_url)
        return len(data)

    def close(self):
        """Close the HTTP client if this sender created it."""
        if self._owns_client:
            self._client.close()
