"""Data models for advisories, builds and SBOM generation requests."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class AdvisoryStatus(Enum):
    """Advisory lifecycle states relevant to SBOM generation."""

    QE = "QE"
    SHIPPED_LIVE = "SHIPPED_LIVE"
    OTHER = "OTHER"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "AdvisoryStatus":
        """Map a raw tracking-system status to a known state."""
        if value == cls.QE.value:
            return cls.QE
        if value == cls.SHIPPED_LIVE.value:
            return cls.SHIPPED_LIVE
        return cls.OTHER


RELEVANT_STATUSES = frozenset({AdvisoryStatus.QE, AdvisoryStatus.SHIPPED_LIVE})


class BuildType(Enum):
    """Artifact types of builds attached to an advisory."""

    RPM = "RPM"
    CONTAINER = "CONTAINER"
    OTHER = "OTHER"

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["BuildType"]:
        """Map a raw type tag, returning None when the tag is absent."""
        if value is None:
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return cls.OTHER


class TargetKind(Enum):
    """Kinds of artifacts an SBOM can be generated for."""

    RPM = "RPM"
    CONTAINER = "CONTAINER"


@dataclass(frozen=True)
class Advisory:
    """Snapshot of an advisory as fetched from the tracking system."""

    id: str
    status: AdvisoryStatus
    is_text_only: bool = False
    raw_status: Optional[str] = None

    @property
    def status_label(self) -> str:
        """Status as reported upstream, for logging."""
        return self.raw_status or self.status.value

    @classmethod
    def from_dict(cls, data: dict) -> "Advisory":
        """Create from dictionary."""
        raw_status = data.get("status")
        return cls(
            id=str(data["id"]),
            status=AdvisoryStatus.from_value(raw_status),
            is_text_only=bool(data.get("is_text_only", False)),
            raw_status=raw_status,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "status": self.status_label,
            "is_text_only": self.is_text_only,
        }


@dataclass(frozen=True)
class Build:
    """A build attached to an advisory."""

    id: int
    nvr: str
    type: Optional[BuildType] = None
    identifier_hint: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Build":
        """Create from dictionary."""
        return cls(
            id=int(data["id"]),
            nvr=data.get("nvr", ""),
            type=BuildType.from_value(data.get("type")),
            identifier_hint=data.get("identifier_hint"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "nvr": self.nvr,
            "type": self.type.value if self.type else None,
            "identifier_hint": self.identifier_hint,
        }


@dataclass(frozen=True)
class GenerationTarget:
    """Resolved reference to the artifact an SBOM is generated for."""

    kind: TargetKind
    identifier: str

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError(f"{self.kind.value} generation target requires an identifier")

    def to_dict(self) -> dict:
        return {"type": self.kind.value, "identifier": self.identifier}


@dataclass(frozen=True)
class Generation:
    """A single SBOM generation for one resolved target."""

    id: str
    target: GenerationTarget

    def to_dict(self) -> dict:
        return {"generationId": self.id, "target": self.target.to_dict()}


@dataclass(frozen=True)
class Publisher:
    """A downstream destination for generated SBOMs."""

    name: str
    version: str

    def to_dict(self) -> dict:
        return {"name": self.name, "version": self.version}


@dataclass(frozen=True)
class GenerationRequest:
    """The batch of generations and publishers produced for one advisory.

    Publishers and generations are stored as tuples so a request cannot be
    changed after it has been handed to the sink.
    """

    id: str
    publishers: tuple[Publisher, ...] = ()
    generations: tuple[Generation, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "publishers", tuple(self.publishers))
        object.__setattr__(self, "generations", tuple(self.generations))

    def to_dict(self) -> dict:
        """Convert to the payload accepted by the generation request API."""
        return {
            "generationRequestId": self.id,
            "publishers": [p.to_dict() for p in self.publishers],
            "generations": [g.to_dict() for g in self.generations],
        }


@dataclass(frozen=True)
class FailureSpec:
    """Error context reported to the failure notifier."""

    reason: str
    error_code: str
    exception_class: str
    stack_trace: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "reason": self.reason,
            "errorCode": self.error_code,
            "exceptionClass": self.exception_class,
            "stackTrace": self.stack_trace,
            "timestamp": self.timestamp.isoformat(),
        }
