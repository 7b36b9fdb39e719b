"""Koji hub client for container image digests."""

import logging
import xmlrpc.client
from typing import Any, Optional

import httpx

from advisory_handler import __version__

logger = logging.getLogger(__name__)

DIGEST_MARKER = "@sha256:"


class KojiClient:
    """Client for the Koji hub XML-RPC API.

    Only the calls needed to resolve container builds to pinned image
    references are implemented.
    """

    def __init__(self, hub_url: str, timeout: float = 30.0) -> None:
        """Initialize the Koji client.

        Args:
            hub_url: Koji hub endpoint, e.g. https://koji.example.com/kojihub.
            timeout: HTTP request timeout in seconds.
        """
        self.hub_url = hub_url
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "text/xml",
                "User-Agent": f"advisory-handler/{__version__}",
            },
        )

    def get_image_names(self, build_ids: list[int]) -> dict[int, str]:
        """Fetch the digest-pinned pull spec for each container build.

        All builds are looked up in one multicall request. Builds that do
        not exist, fail individually or carry no digest are left out of the
        result.

        Args:
            build_ids: Koji build ids.

        Returns:
            Dict mapping build id to a pull spec like
            ``registry.example.com/ns/image@sha256:...``.

        Raises:
            httpx.HTTPError: If the request fails.
            xmlrpc.client.Fault: If the hub rejects the multicall.
        """
        if not build_ids:
            return {}

        calls = [{"methodName": "getBuild", "params": [build_id]} for build_id in build_ids]
        results = self._call("system.multicall", calls)

        image_names: dict[int, str] = {}
        for build_id, result in zip(build_ids, results):
            if isinstance(result, dict):
                logger.warning(
                    "Koji getBuild failed for build %s: %s",
                    build_id,
                    result.get("faultString"),
                )
                continue

            build = result[0] if result else None
            pull_spec = self._digest_pull_spec(build)
            if pull_spec:
                image_names[build_id] = pull_spec
            else:
                logger.debug("Koji build %s has no digest pull spec", build_id)

        return image_names

    def _call(self, method: str, *params: Any) -> Any:
        body = xmlrpc.client.dumps(params, methodname=method, allow_none=True)
        response = self._client.post(self.hub_url, content=body.encode("utf-8"))
        response.raise_for_status()
        (result,), _ = xmlrpc.client.loads(response.content, use_builtin_types=True)
        return result

    @staticmethod
    def _digest_pull_spec(build: Optional[dict]) -> Optional[str]:
        if not build:
            return None
        extra = build.get("extra") or {}
        index = (extra.get("image") or {}).get("index") or {}
        for pull_spec in index.get("pull") or []:
            if DIGEST_MARKER in pull_spec:
                return pull_spec
        return None

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "KojiClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
