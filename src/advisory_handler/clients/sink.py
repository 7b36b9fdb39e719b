"""Sinks that receive generation requests."""

import logging
import threading

import httpx

from advisory_handler import __version__
from advisory_handler.models import GenerationRequest

logger = logging.getLogger(__name__)


class HttpGenerationRequestSink:
    """Forwards generation requests to the SBOM generation API."""

    def __init__(self, url: str, timeout: float = 30.0) -> None:
        self.url = url
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": f"advisory-handler/{__version__}",
            },
        )

    def request_generations(self, request: GenerationRequest) -> None:
        """POST the request.

        Raises:
            httpx.HTTPError: If the API rejects the request or is unreachable.
        """
        response = self._client.post(self.url, json=request.to_dict())
        response.raise_for_status()
        logger.info(
            "Forwarded generation request %s (%d generation(s))",
            request.id,
            len(request.generations),
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()


class InMemoryGenerationRequestSink:
    """Keeps forwarded generation requests in memory."""

    def __init__(self) -> None:
        self._requests: list[GenerationRequest] = []
        self._lock = threading.Lock()

    def request_generations(self, request: GenerationRequest) -> None:
        with self._lock:
            self._requests.append(request)
        logger.debug("Stored generation request %s", request.id)

    @property
    def requests(self) -> list[GenerationRequest]:
        """Requests received so far, in arrival order."""
        with self._lock:
            return list(self._requests)
