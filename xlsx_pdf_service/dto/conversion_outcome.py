from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    CAPACITY_ERROR = "capacity_error"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT_ERROR = "timeout_error"
    INTERNAL_ERROR = "internal_error"


class RejectionReason(str, Enum):
    MISSING_FILE = "MissingFile"
    INVALID_FORMAT = "InvalidFormat"
    TOO_LARGE = "TooLarge"
    OVERLOADED = "Overloaded"
    MALFORMED_DOCUMENT = "MalformedDocument"


class ConversionOutcome(BaseModel):
    """Terminal result of one conversion pipeline run.

    Only the payload belonging to ``kind`` is populated. Instances are frozen, so
    once a stage produces an outcome nothing downstream can rewrite it. Build them
    through the named constructors below rather than directly.
    """

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    pdf_bytes: bytes | None = Field(default=None, repr=False)
    reason: RejectionReason | None = None
    status_code: int | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls, pdf_bytes: bytes) -> ConversionOutcome:
        return cls(kind=OutcomeKind.SUCCESS, pdf_bytes=pdf_bytes)

    @classmethod
    def validation_error(cls, reason: RejectionReason) -> ConversionOutcome:
        return cls(kind=OutcomeKind.VALIDATION_ERROR, reason=reason)

    @classmethod
    def capacity_error(cls, reason: RejectionReason = RejectionReason.OVERLOADED) -> ConversionOutcome:
        return cls(kind=OutcomeKind.CAPACITY_ERROR, reason=reason)

    @classmethod
    def upstream_error(cls, status_code: int, message: str) -> ConversionOutcome:
        return cls(kind=OutcomeKind.UPSTREAM_ERROR, status_code=status_code, message=message)

    @classmethod
    def timeout_error(cls) -> ConversionOutcome:
        return cls(kind=OutcomeKind.TIMEOUT_ERROR)

    @classmethod
    def internal_error(cls, reason: RejectionReason | None = None) -> ConversionOutcome:
        return cls(kind=OutcomeKind.INTERNAL_ERROR, reason=reason)
