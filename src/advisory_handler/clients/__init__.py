"""Clients for the services the advisory handler talks to."""

from .errata import ErrataToolClient
from .koji import KojiClient
from .notifier import LoggingFailureNotifier, NotifyResponse, WebhookFailureNotifier
from .sink import HttpGenerationRequestSink, InMemoryGenerationRequestSink

__all__ = [
    "ErrataToolClient",
    "KojiClient",
    "LoggingFailureNotifier",
    "WebhookFailureNotifier",
    "NotifyResponse",
    "HttpGenerationRequestSink",
    "InMemoryGenerationRequestSink",
]
