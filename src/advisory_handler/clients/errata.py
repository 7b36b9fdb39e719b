"""Errata Tool API client."""

import logging
from typing import Optional

import httpx

from advisory_handler import __version__
from advisory_handler.models import Advisory, AdvisoryStatus, Build, BuildType

logger = logging.getLogger(__name__)

IMAGE_ARCHIVE_SUFFIXES = (".tar", ".tar.gz", ".tar.xz")


class ErrataToolClient:
    """Client for the Errata Tool REST API (v1 JSON endpoints)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        """Initialize the Errata Tool client.

        Args:
            base_url: Errata Tool server URL, e.g. https://errata.example.com.
            timeout: HTTP request timeout in seconds.
            headers: Additional headers, e.g. an Authorization header.
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": f"advisory-handler/{__version__}",
                **(headers or {}),
            },
        )

    def get_info(self, advisory_id: str) -> Advisory:
        """Fetch an advisory.

        Raises:
            httpx.HTTPError: If the request fails.
            ValueError: If the response does not describe an advisory.
        """
        data = self._get_json(f"/api/v1/erratum/{advisory_id}")

        errata = data.get("errata") or {}
        # Keyed by advisory type: rhba, rhea or rhsa
        details = next(iter(errata.values()), None)
        if not isinstance(details, dict):
            raise ValueError(f"Errata Tool returned no details for advisory {advisory_id}")

        content = (data.get("content") or {}).get("content") or {}
        raw_status = details.get("status")

        return Advisory(
            id=str(details.get("id", advisory_id)),
            status=AdvisoryStatus.from_value(raw_status),
            is_text_only=bool(content.get("text_only", False)),
            raw_status=raw_status,
        )

    def fetch_builds(self, advisory_id: str) -> list[Build]:
        """Fetch the builds attached to an advisory, across product versions.

        A build attached to several product versions is returned once.

        Raises:
            httpx.HTTPError: If the request fails.
        """
        data = self._get_json(f"/api/v1/erratum/{advisory_id}/builds_list")

        builds: list[Build] = []
        seen: set[int] = set()

        for product_version in data.values():
            for entry in product_version.get("builds", []):
                for nvr, build_data in entry.items():
                    build = self._parse_build(nvr, build_data)
                    if build.id in seen:
                        continue
                    seen.add(build.id)
                    builds.append(build)

        return builds

    def _get_json(self, path: str) -> dict:
        response = self._client.get(f"{self.base_url}{path}")
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse_build(nvr: str, data: dict) -> Build:
        files = [
            name
            for arches in (data.get("variant_arch") or {}).values()
            for names in arches.values()
            for name in names
        ]
        build_type = _build_type_from_files(files)
        identifier_hint = str(data["id"]) if build_type == BuildType.RPM else None

        return Build(
            id=int(data["id"]),
            nvr=data.get("nvr", nvr),
            type=build_type,
            identifier_hint=identifier_hint,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "ErrataToolClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def _build_type_from_files(files: list[str]) -> Optional[BuildType]:
    """Infer the artifact type of a build from its attached file names."""
    if not files:
        return None
    if any(name.endswith(".rpm") for name in files):
        return BuildType.RPM
    if any(name.endswith(IMAGE_ARCHIVE_SUFFIXES) or "docker-image" in name for name in files):
        return BuildType.CONTAINER
    return BuildType.OTHER
