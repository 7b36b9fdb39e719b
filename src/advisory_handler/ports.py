"""Interfaces of the external collaborators used by the advisory service."""

from typing import Optional, Protocol

from .models import Advisory, Build, FailureSpec, GenerationRequest


class TrackingSystem(Protocol):
    """Source of advisories and their attached builds."""

    def get_info(self, advisory_id: str) -> Advisory: ...

    def fetch_builds(self, advisory_id: str) -> list[Build]: ...


class DigestSource(Protocol):
    """Build system that maps container builds to pinned image references."""

    def get_image_names(self, build_ids: list[int]) -> dict[int, str]: ...


class FailureNotifier(Protocol):
    """Receives reports of failed advisory processing."""

    def notify(
        self,
        failure: FailureSpec,
        request_id: Optional[str] = None,
        generation_id: Optional[str] = None,
    ) -> None: ...


class GenerationRequestSink(Protocol):
    """Accepts generation requests for execution."""

    def request_generations(self, request: GenerationRequest) -> None: ...
