"""Ingress for Errata Tool status-change notifications from the message bus."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from .config import DEFAULT_SUBJECT
from .models import AdvisoryStatus, GenerationRequest

logger = logging.getLogger(__name__)

RELEVANT_STATUS_VALUES = frozenset({AdvisoryStatus.QE.value, AdvisoryStatus.SHIPPED_LIVE.value})


class AdvisoryHandler(Protocol):
    """Entry point invoked for every relevant notification."""

    def request_generations(self, advisory_id: str) -> GenerationRequest: ...


class IngressOutcome(Enum):
    """How an inbound message was handled."""

    SKIPPED_SUBJECT = "skipped_subject"
    INVALID_PAYLOAD = "invalid_payload"
    MISSING_ID = "missing_id"
    IRRELEVANT_STATUS = "irrelevant_status"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass
class IncomingMessage:
    """A message received from the bus.

    `ack` is called once the ingress is done with the message; transports
    without explicit acknowledgement can leave it unset.
    """

    payload: bytes
    properties: dict[str, Any] = field(default_factory=dict)
    ack: Optional[Callable[[], None]] = None

    @property
    def subject(self) -> Optional[str]:
        return self.properties.get("subject")


@dataclass
class IngressResult:
    """Result of handling one message. Never raised, only logged."""

    outcome: IngressOutcome
    advisory_id: Optional[str] = None
    status: Optional[str] = None
    request: Optional[GenerationRequest] = None
    error: Optional[BaseException] = None

    @property
    def triggered(self) -> bool:
        """Whether the advisory handler was invoked for this message."""
        return self.outcome in (IngressOutcome.PROCESSED, IngressOutcome.FAILED)


class NotificationIngress:
    """Filters advisory notifications and triggers generation requests.

    A message is acknowledged on every path, including when processing the
    advisory fails: redelivery is left to the transport.
    """

    def __init__(self, handler: AdvisoryHandler, subject: str = DEFAULT_SUBJECT):
        self.handler = handler
        self.subject = subject

    def process(self, message: IncomingMessage) -> IngressResult:
        """Handle one message and acknowledge it."""
        try:
            return self._process(message)
        finally:
            if message.ack is not None:
                message.ack()

    def _process(self, message: IncomingMessage) -> IngressResult:
        logger.debug("Received new Errata Tool status change notification")

        if message.subject != self.subject:
            logger.warning("Received message with invalid or missing subject %r, skipping", message.subject)
            return IngressResult(IngressOutcome.SKIPPED_SUBJECT)

        body = self._parse_payload(message.payload)
        if body is None:
            return IngressResult(IngressOutcome.INVALID_PAYLOAD)

        errata_id = body.get("errata_id")
        if not isinstance(errata_id, int) or isinstance(errata_id, bool):
            logger.error("Errata id not found in notification: %s", body)
            return IngressResult(IngressOutcome.MISSING_ID)

        advisory_id = str(errata_id)
        status = body.get("errata_status")
        if not isinstance(status, str):
            logger.debug("Skipping notification for errata %s with malformed status %r", advisory_id, status)
            return IngressResult(IngressOutcome.IRRELEVANT_STATUS, advisory_id)
        if status not in RELEVANT_STATUS_VALUES:
            logger.debug("Skipping notification for errata %s with status %s", advisory_id, status)
            return IngressResult(IngressOutcome.IRRELEVANT_STATUS, advisory_id, status)

        logger.info("Triggering generation for advisory %s based on status change to %s", advisory_id, status)
        try:
            request = self.handler.request_generations(advisory_id)
        except Exception as e:
            logger.error("Processing advisory %s failed: %s", advisory_id, e, exc_info=True)
            return IngressResult(IngressOutcome.FAILED, advisory_id, status, error=e)

        return IngressResult(IngressOutcome.PROCESSED, advisory_id, status, request=request)

    @staticmethod
    def _parse_payload(payload: bytes) -> Optional[dict]:
        try:
            body = json.loads(payload.decode("utf-8"))
        except (ValueError, RecursionError) as e:
            logger.error("Failed to parse notification payload: %s. Raw payload: %r", e, payload[:500])
            return None

        if not isinstance(body, dict):
            logger.error("Notification payload is not a JSON object: %r", payload[:500])
            return None
        return body
