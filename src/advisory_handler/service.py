"""Advisory processing service.

Handles Errata Tool advisories and turns them into SBOM generation requests:

- Advisory state: only QE and SHIPPED_LIVE advisories are processed. Any
  other state still produces (and forwards) an empty request.
- Publishers: QE selects the build publisher, SHIPPED_LIVE the release
  publisher.
- Builds: RPM builds are identified by their build id, container builds by
  the image digest reported by Koji.
- Text-only advisories produce no generations yet.

Every failed upstream call is reported to the failure notifier before an
AdvisoryProcessingError is raised.
"""

import logging
from typing import Callable, NoReturn, Optional, TypeVar

from .classifier import classify_builds
from .config import HandlerConfig
from .failure import build_failure_spec
from .models import (
    RELEVANT_STATUSES,
    Advisory,
    Build,
    BuildType,
    Generation,
    GenerationRequest,
)
from .ports import DigestSource, FailureNotifier, GenerationRequestSink, TrackingSystem
from .publishers import select_publishers
from .resolver import resolve_container_builds, resolve_rpm_builds
from .tsid import create_unique_generation_request_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AdvisoryProcessingError(Exception):
    """Raised when an advisory cannot be processed because an upstream call failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class AdvisoryService:
    """Orchestrates SBOM generation requests for advisories."""

    def __init__(
        self,
        errata_tool: TrackingSystem,
        generation_request_sink: GenerationRequestSink,
        koji: DigestSource,
        failure_notifier: FailureNotifier,
        config: Optional[HandlerConfig] = None,
    ):
        self.errata_tool = errata_tool
        self.generation_request_sink = generation_request_sink
        self.koji = koji
        self.failure_notifier = failure_notifier
        self.config = config or HandlerConfig()

    def request_generations(self, advisory_id: str) -> GenerationRequest:
        """Build and forward the generation request for an advisory.

        Args:
            advisory_id: Errata Tool advisory id.

        Returns:
            The GenerationRequest that was forwarded to the sink.

        Raises:
            AdvisoryProcessingError: If fetching the advisory, its builds or
                the container image digests fails.
        """
        logger.info("Processing advisory %s", advisory_id)

        advisory = self._fetch_advisory(advisory_id)
        logger.debug(
            "Advisory '%s' status: %s, text-only: %s",
            advisory.id,
            advisory.status_label,
            advisory.is_text_only,
        )

        if advisory.status not in RELEVANT_STATUSES:
            logger.info(
                "Advisory '%s' has state '%s' which is not QE or SHIPPED_LIVE, ignoring",
                advisory.id,
                advisory.status_label,
            )
            empty_request = GenerationRequest(id=create_unique_generation_request_id())
            self.generation_request_sink.request_generations(empty_request)
            return empty_request

        publishers = select_publishers(advisory.status, self.config)
        logger.debug("Advisory '%s' publishers: %s", advisory.id, publishers)

        if advisory.is_text_only:
            generations = self._handle_text_only_advisory(advisory)
        else:
            generations = self._handle_standard_advisory(advisory)

        generation_request = GenerationRequest(
            id=create_unique_generation_request_id(),
            publishers=tuple(publishers),
            generations=tuple(generations),
        )
        self.generation_request_sink.request_generations(generation_request)

        logger.info(
            "Advisory '%s' processed: %d generation(s) requested in %s",
            advisory_id,
            len(generations),
            generation_request.id,
        )
        return generation_request

    def _fetch_advisory(self, advisory_id: str) -> Advisory:
        return self._call_upstream(
            lambda: self.errata_tool.get_info(advisory_id),
            f"Failed to fetch advisory from Errata Tool: {advisory_id}",
        )

    def _fetch_builds(self, advisory_id: str) -> list[Build]:
        return self._call_upstream(
            lambda: self.errata_tool.fetch_builds(advisory_id),
            f"Failed to fetch builds from Errata Tool for advisory: {advisory_id}",
        )

    def _fetch_image_digests(self, build_ids: list[int]) -> dict[int, str]:
        return self._call_upstream(
            lambda: self.koji.get_image_names(build_ids),
            "Failed to fetch container image digests from Koji",
        )

    def _handle_text_only_advisory(self, advisory: Advisory) -> list[Generation]:
        # TODO: generate manifests for text-only advisories from their CPE/product listings
        logger.info("Advisory '%s' is text-only, skipping (not yet supported)", advisory.id)
        return []

    def _handle_standard_advisory(self, advisory: Advisory) -> list[Generation]:
        logger.info("Processing standard advisory '%s'", advisory.id)

        builds = self._fetch_builds(advisory.id)
        logger.debug("Advisory '%s' has %d build(s) attached", advisory.id, len(builds))

        if not builds:
            logger.info("Advisory '%s' has no builds attached", advisory.id)
            return []

        builds_by_type = classify_builds(builds)
        logger.debug("Build types found: %s", [t.value for t in builds_by_type])

        generations: list[Generation] = []

        rpm_builds = builds_by_type.get(BuildType.RPM, [])
        if rpm_builds:
            rpm_generations = resolve_rpm_builds(rpm_builds)
            generations.extend(rpm_generations)
            logger.debug("Created %d RPM generation(s)", len(rpm_generations))

        container_builds = builds_by_type.get(BuildType.CONTAINER, [])
        if container_builds:
            image_digests = self._fetch_image_digests([b.id for b in container_builds])
            logger.debug("Retrieved %d image digest(s) from Koji", len(image_digests))
            container_generations = resolve_container_builds(container_builds, image_digests)
            generations.extend(container_generations)
            logger.debug("Created %d container generation(s)", len(container_generations))

        for build in builds_by_type.get(BuildType.OTHER, []):
            logger.debug("Build %s (%s) has an unsupported type, skipping", build.id, build.nvr)

        return generations

    def _call_upstream(self, call: Callable[[], T], message: str) -> T:
        try:
            return call()
        except Exception as e:
            logger.error("%s: %s", message, e)
            self._notify_failure_and_raise(message, e)

    def _notify_failure_and_raise(self, message: str, cause: Exception) -> NoReturn:
        failure = build_failure_spec(cause)
        try:
            self.failure_notifier.notify(failure, None, None)
        except Exception:
            # The upstream error is what the caller needs to see
            logger.exception("Failure notifier raised while reporting: %s", message)
        raise AdvisoryProcessingError(message, cause) from cause


def create_service(config: HandlerConfig) -> AdvisoryService:
    """Wire an AdvisoryService with the clients described by the config."""
    from .clients import (
        ErrataToolClient,
        HttpGenerationRequestSink,
        InMemoryGenerationRequestSink,
        KojiClient,
        LoggingFailureNotifier,
        WebhookFailureNotifier,
    )

    if not config.errata_url:
        raise ValueError("errata_url must be configured")
    if not config.koji_url:
        raise ValueError("koji_url must be configured")

    sink: GenerationRequestSink
    if config.sink_url:
        sink = HttpGenerationRequestSink(config.sink_url, timeout=config.http_timeout)
    else:
        sink = InMemoryGenerationRequestSink()

    notifier: FailureNotifier
    if config.notifier_webhook_url:
        notifier = WebhookFailureNotifier(
            config.notifier_webhook_url,
            retry_count=config.notifier_retry_count,
            timeout=config.http_timeout,
        )
    else:
        notifier = LoggingFailureNotifier()

    return AdvisoryService(
        errata_tool=ErrataToolClient(config.errata_url, timeout=config.http_timeout),
        generation_request_sink=sink,
        koji=KojiClient(config.koji_url, timeout=config.http_timeout),
        failure_notifier=notifier,
        config=config,
    )
