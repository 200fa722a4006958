"""
Base Contracts and Shared Types

Foundational types used across all layers. Everything here is pure data:
no behavior beyond construction helpers, no side effects.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for board operations.
    Every failure a caller can observe is enumerated here.
    """
    # Record errors
    VALIDATION_FAILED = auto()
    CARD_NOT_FOUND = auto()

    # Bulk sync errors
    INVALID_FORMAT = auto()
    PARSE_FAILED = auto()
    CONFIRMATION_REQUIRED = auto()

    # Layout errors
    INVALID_AXIS = auto()

    # Storage errors
    PERSISTENCE_FAILED = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and reported.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: str) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple(sorted((k, str(v)) for k, v in context.items()))
        )


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


# =============================================================================
# TEMPORAL TYPES
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp used for audit records.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()


# =============================================================================
# AXIS MODES
# =============================================================================

class AxisAttribute(Enum):
    """Card attribute that can be bound to a board axis."""
    PLACE = "place"
    ACTOR = "actor"
    TIME = "time"

    @staticmethod
    def parse(value) -> AxisAttribute:
        """Accept an AxisAttribute or its string value; reject anything else."""
        if isinstance(value, AxisAttribute):
            return value
        try:
            return AxisAttribute(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown axis attribute {value!r}; expected one of "
                f"{', '.join(a.value for a in AxisAttribute)}"
            ) from None

    @property
    def is_categorical(self) -> bool:
        return self is not AxisAttribute.TIME
