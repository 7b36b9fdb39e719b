"""advisory-handler - SBOM generation requests for Errata Tool advisories."""

__version__ = "0.1.0"

from advisory_handler.config import HandlerConfig, load_config
from advisory_handler.ingress import IncomingMessage, IngressOutcome, IngressResult, NotificationIngress
from advisory_handler.models import (
    Advisory,
    AdvisoryStatus,
    Build,
    BuildType,
    FailureSpec,
    Generation,
    GenerationRequest,
    GenerationTarget,
    Publisher,
    TargetKind,
)
from advisory_handler.service import AdvisoryProcessingError, AdvisoryService, create_service

__all__ = [
    "__version__",
    "AdvisoryService",
    "AdvisoryProcessingError",
    "create_service",
    "NotificationIngress",
    "IncomingMessage",
    "IngressOutcome",
    "IngressResult",
    "HandlerConfig",
    "load_config",
    "Advisory",
    "AdvisoryStatus",
    "Build",
    "BuildType",
    "FailureSpec",
    "Generation",
    "GenerationRequest",
    "GenerationTarget",
    "Publisher",
    "TargetKind",
]
