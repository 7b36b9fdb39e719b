"""Failure notifiers for advisory processing errors."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from advisory_handler import __version__
from advisory_handler.models import FailureSpec

logger = logging.getLogger(__name__)


@dataclass
class NotifyResponse:
    """Response from a failure notification attempt."""

    success: bool
    webhook_status: int
    retry_count: int
    error_message: Optional[str] = None


class LoggingFailureNotifier:
    """Reports failures to the log only."""

    def notify(
        self,
        failure: FailureSpec,
        request_id: Optional[str] = None,
        generation_id: Optional[str] = None,
    ) -> None:
        logger.error(
            "Advisory processing failure [%s] %s: %s (request=%s, generation=%s)",
            failure.error_code,
            failure.exception_class,
            failure.reason,
            request_id,
            generation_id,
        )


class WebhookFailureNotifier:
    """Sends failure reports to a webhook endpoint.

    A report is re-sent right away, up to ``retry_count`` more times, when the
    endpoint is unreachable or answers with a 5xx status. Other responses end
    delivery immediately, and attempts are not spaced out.
    """

    def __init__(
        self,
        webhook_url: str,
        retry_count: int = 2,
        timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
    ):
        self.webhook_url = webhook_url
        self.retry_count = retry_count
        self.timeout = timeout
        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": f"advisory-handler/{__version__}",
            **(headers or {}),
        }

    def notify(
        self,
        failure: FailureSpec,
        request_id: Optional[str] = None,
        generation_id: Optional[str] = None,
    ) -> NotifyResponse:
        """Send a failure report to the webhook.

        Delivery problems are logged and reported in the returned
        NotifyResponse, never raised.
        """
        payload = {
            "type": "advisory_processing_failure",
            "failure": failure.to_dict(),
            "generationRequestId": request_id,
            "generationId": generation_id,
        }

        response = NotifyResponse(success=False, webhook_status=0, retry_count=0)
        with httpx.Client(timeout=self.timeout, headers=self.headers) as client:
            for attempt in range(self.retry_count + 1):
                response = self._deliver(client, payload, attempt)
                if response.success or not _is_retryable(response.webhook_status):
                    break

        if response.success:
            logger.info("Failure notification sent: %s", failure.error_code)
        else:
            logger.error(
                "Failed to send failure notification after %d attempt(s): %s",
                response.retry_count + 1,
                response.error_message,
            )
        return response

    def _deliver(self, client: httpx.Client, payload: dict, attempt: int) -> NotifyResponse:
        try:
            http_response = client.post(self.webhook_url, json=payload)
        except httpx.RequestError as e:
            logger.warning("Notifier webhook unreachable (attempt %d): %s", attempt + 1, e)
            return NotifyResponse(False, 0, attempt, f"Request error: {e}")

        status = http_response.status_code
        if 200 <= status < 300:
            return NotifyResponse(True, status, attempt)

        logger.warning("Notifier webhook returned %d (attempt %d)", status, attempt + 1)
        return NotifyResponse(False, status, attempt, f"HTTP {status}: {http_response.text[:200]}")


def _is_retryable(status: int) -> bool:
    # 0 means no response was received
    return status == 0 or status >= 500
