"""Tests for the advisory processing service."""

import pytest
from unittest.mock import Mock

import httpx

from advisory_handler.config import HandlerConfig
from advisory_handler.models import (
    Advisory,
    AdvisoryStatus,
    Build,
    BuildType,
    FailureSpec,
    TargetKind,
)
from advisory_handler.service import AdvisoryProcessingError, AdvisoryService, create_service

ADVISORY_ID = "12345"


@pytest.fixture
def errata_tool():
    return Mock()


@pytest.fixture
def sink():
    return Mock()


@pytest.fixture
def koji():
    return Mock()


@pytest.fixture
def notifier():
    return Mock()


@pytest.fixture
def service(errata_tool, sink, koji, notifier):
    """Create a service with mocked collaborators."""
    config = HandlerConfig(
        build_publisher_name="atlas-build",
        build_publisher_version="1.0",
        release_publisher_name="atlas-release",
        release_publisher_version="1.0",
    )
    return AdvisoryService(errata_tool, sink, koji, notifier, config=config)


def advisory(status: AdvisoryStatus, text_only: bool = False) -> Advisory:
    return Advisory(id=ADVISORY_ID, status=status, is_text_only=text_only)


class TestRpmAdvisories:
    """Tests for advisories with RPM builds."""

    def test_qe_advisory_with_rpm_builds(self, service, errata_tool, sink, koji):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = [
            Build(3366231, "cdi-api-2.0.2-15.el10", BuildType.RPM, "3366231"),
            Build(3366232, "httpd-2.4.51-1.el9", BuildType.RPM, "3366232"),
        ]

        result = service.request_generations(ADVISORY_ID)

        assert len(result.generations) == 2
        assert [g.target.identifier for g in result.generations] == ["3366231", "3366232"]
        assert all(g.target.kind == TargetKind.RPM for g in result.generations)
        assert len(result.publishers) == 1
        assert result.publishers[0].name == "atlas-build"

        errata_tool.get_info.assert_called_once_with(ADVISORY_ID)
        errata_tool.fetch_builds.assert_called_once_with(ADVISORY_ID)
        sink.request_generations.assert_called_once_with(result)
        koji.get_image_names.assert_not_called()

    def test_single_rpm_build_scenario(self, service, errata_tool):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = [
            Build(3366231, "cdi-api-2.0.2-15.el10", BuildType.RPM)
        ]

        result = service.request_generations(ADVISORY_ID)

        assert len(result.generations) == 1
        assert result.generations[0].target.kind == TargetKind.RPM
        assert result.generations[0].target.identifier == "3366231"

    def test_shipped_live_uses_release_publisher(self, service, errata_tool):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.SHIPPED_LIVE)
        errata_tool.fetch_builds.return_value = [
            Build(3366231, "cdi-api-2.0.2-15.el10", BuildType.RPM, "3366231")
        ]

        result = service.request_generations(ADVISORY_ID)

        assert len(result.generations) == 1
        assert len(result.publishers) == 1
        assert result.publishers[0].name == "atlas-release"
        assert result.publishers[0].version == "1.0"


class TestContainerAdvisories:
    """Tests for advisories with container builds."""

    @pytest.fixture
    def container_builds(self):
        return [
            Build(3338841, "ubi9-container-9.1-123", BuildType.CONTAINER),
            Build(3338842, "nginx-container-1.20-456", BuildType.CONTAINER),
        ]

    def test_all_digests_resolved(self, service, errata_tool, koji, container_builds):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = container_builds
        koji.get_image_names.return_value = {
            3338841: "registry.io/ubi9@sha256:abc123",
            3338842: "registry.io/nginx@sha256:def456",
        }

        result = service.request_generations(ADVISORY_ID)

        assert [g.target.identifier for g in result.generations] == [
            "registry.io/ubi9@sha256:abc123",
            "registry.io/nginx@sha256:def456",
        ]
        assert all(g.target.kind == TargetKind.CONTAINER for g in result.generations)
        koji.get_image_names.assert_called_once_with([3338841, 3338842])

    def test_missing_digest_skips_build(self, service, errata_tool, koji, container_builds):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = container_builds
        koji.get_image_names.return_value = {3338841: "registry.io/ubi9@sha256:abc123"}

        result = service.request_generations(ADVISORY_ID)

        assert len(result.generations) == 1
        assert result.generations[0].target.identifier == "registry.io/ubi9@sha256:abc123"
        koji.get_image_names.assert_called_once()

    def test_empty_digest_skips_build(self, service, errata_tool, koji, container_builds):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = container_builds
        koji.get_image_names.return_value = {
            3338841: "",
            3338842: "registry.io/nginx@sha256:def456",
        }

        result = service.request_generations(ADVISORY_ID)

        assert [g.target.identifier for g in result.generations] == ["registry.io/nginx@sha256:def456"]

    def test_mixed_builds_rpm_first(self, service, errata_tool, koji):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = [
            Build(3338841, "ubi9-container-9.1-123", BuildType.CONTAINER),
            Build(3366231, "cdi-api-2.0.2-15.el10", BuildType.RPM),
            Build(3366299, "no-type-1.0-1.el9", None),
            Build(4000000, "some-module-1.0", BuildType.OTHER),
        ]
        koji.get_image_names.return_value = {3338841: "registry.io/ubi9@sha256:abc123"}

        result = service.request_generations(ADVISORY_ID)

        assert [g.target.kind for g in result.generations] == [TargetKind.RPM, TargetKind.CONTAINER]
        assert [g.target.identifier for g in result.generations] == [
            "3366231",
            "registry.io/ubi9@sha256:abc123",
        ]
        koji.get_image_names.assert_called_once_with([3338841])

    def test_generation_ids_are_unique(self, service, errata_tool, koji, container_builds):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = container_builds
        koji.get_image_names.return_value = {
            3338841: "registry.io/ubi9@sha256:abc123",
            3338842: "registry.io/nginx@sha256:def456",
        }

        result = service.request_generations(ADVISORY_ID)

        ids = [g.id for g in result.generations] + [result.id]
        assert len(set(ids)) == 3


class TestSkippedAdvisories:
    """Tests for advisories that produce empty requests."""

    def test_irrelevant_state_forwards_empty_request(self, service, errata_tool, sink):
        errata_tool.get_info.return_value = Advisory(
            id=ADVISORY_ID, status=AdvisoryStatus.OTHER, raw_status="NEW_FILES"
        )

        result = service.request_generations(ADVISORY_ID)

        assert result.generations == ()
        assert result.publishers == ()
        assert result.id
        errata_tool.fetch_builds.assert_not_called()
        sink.request_generations.assert_called_once_with(result)

    def test_text_only_advisory(self, service, errata_tool, sink):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.SHIPPED_LIVE, text_only=True)

        result = service.request_generations(ADVISORY_ID)

        assert result.generations == ()
        assert [p.name for p in result.publishers] == ["atlas-release"]
        errata_tool.fetch_builds.assert_not_called()
        sink.request_generations.assert_called_once()

    def test_no_builds(self, service, errata_tool, koji, sink):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = []

        result = service.request_generations(ADVISORY_ID)

        assert result.generations == ()
        assert len(result.publishers) == 1
        koji.get_image_names.assert_not_called()
        sink.request_generations.assert_called_once()


class TestUpstreamFailures:
    """Tests for failure reporting on upstream errors."""

    def test_errata_tool_info_failure(self, service, errata_tool, notifier, sink):
        error = RuntimeError("ErrataTool connection failed")
        errata_tool.get_info.side_effect = error

        with pytest.raises(AdvisoryProcessingError) as exc_info:
            service.request_generations(ADVISORY_ID)

        assert exc_info.value.cause is error
        assert exc_info.value.__cause__ is error
        notifier.notify.assert_called_once()
        failure, request_id, generation_id = notifier.notify.call_args.args
        assert isinstance(failure, FailureSpec)
        assert failure.reason == "ErrataTool connection failed"
        assert request_id is None
        assert generation_id is None
        sink.request_generations.assert_not_called()

    def test_build_fetch_failure(self, service, errata_tool, notifier, sink):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.side_effect = httpx.ConnectError("unreachable")

        with pytest.raises(AdvisoryProcessingError, match="Failed to fetch builds"):
            service.request_generations(ADVISORY_ID)

        notifier.notify.assert_called_once()
        assert notifier.notify.call_args.args[0].error_code == "UPSTREAM_UNAVAILABLE"
        sink.request_generations.assert_not_called()

    def test_koji_failure(self, service, errata_tool, koji, notifier, sink):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = [
            Build(3338841, "ubi9-container-9.1-123", BuildType.CONTAINER)
        ]
        koji.get_image_names.side_effect = RuntimeError("Koji connection failed")

        with pytest.raises(AdvisoryProcessingError, match="Koji"):
            service.request_generations(ADVISORY_ID)

        notifier.notify.assert_called_once()
        assert notifier.notify.call_args.args[1:] == (None, None)
        sink.request_generations.assert_not_called()

    def test_notifier_failure_does_not_mask_error(self, service, errata_tool, notifier):
        error = RuntimeError("ErrataTool connection failed")
        errata_tool.get_info.side_effect = error
        notifier.notify.side_effect = RuntimeError("notifier down")

        with pytest.raises(AdvisoryProcessingError) as exc_info:
            service.request_generations(ADVISORY_ID)

        assert exc_info.value.cause is error
        notifier.notify.assert_called_once()

    def test_sink_failure_propagates(self, service, errata_tool, sink, notifier):
        errata_tool.get_info.return_value = advisory(AdvisoryStatus.QE)
        errata_tool.fetch_builds.return_value = []
        sink.request_generations.side_effect = RuntimeError("sink down")

        with pytest.raises(RuntimeError, match="sink down"):
            service.request_generations(ADVISORY_ID)

        notifier.notify.assert_not_called()


class TestCreateService:
    """Tests for wiring the service from configuration."""

    def test_requires_upstream_urls(self):
        with pytest.raises(ValueError, match="errata_url"):
            create_service(HandlerConfig())

    def test_defaults_to_in_process_collaborators(self):
        from advisory_handler.clients import InMemoryGenerationRequestSink, LoggingFailureNotifier

        service = create_service(
            HandlerConfig(errata_url="https://errata.example.com", koji_url="https://koji.example.com/kojihub")
        )

        assert isinstance(service.generation_request_sink, InMemoryGenerationRequestSink)
        assert isinstance(service.failure_notifier, LoggingFailureNotifier)

    def test_uses_http_collaborators_when_configured(self):
        from advisory_handler.clients import HttpGenerationRequestSink, WebhookFailureNotifier

        service = create_service(
            HandlerConfig(
                errata_url="https://errata.example.com",
                koji_url="https://koji.example.com/kojihub",
                sink_url="https://sbomer.example.com/api/v1/generations",
                notifier_webhook_url="https://hooks.example.com/failures",
            )
        )

        assert isinstance(service.generation_request_sink, HttpGenerationRequestSink)
        assert isinstance(service.failure_notifier, WebhookFailureNotifier)
