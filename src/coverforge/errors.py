"""Exception hierarchy for coverforge.

Every coverforge error carries:
- error_code: An ErrorCode enum member for programmatic handling
- context: ErrorContext with the factor/strength/engine involved
- suggestions: Actionable steps to resolve the issue

Configuration problems are fatal and raised before generation starts.
Partial coverage is not an error: it is reported through
PartialCoverageWarning, which travels inside the generation result.

Example:
    try:
        engine = AetgEngine(space, strength=5)
    except ConfigurationError as e:
        print(e.format_verbose())
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes.

    Codes are organized by category:
    - E1xx: Configuration errors (fatal, raised before generation)
    - E2xx: Tuple/suite validation errors
    - E3xx: Generation outcomes
    - E9xx: Unknown/internal errors
    """

    # Configuration errors (E1xx)
    EMPTY_FACTOR_SPACE = "E101"
    INVALID_STRENGTH = "E102"
    EMPTY_FACTOR = "E103"
    DUPLICATE_FACTOR = "E104"
    DUPLICATE_LEVEL = "E105"
    INVALID_SETTING = "E106"
    INVALID_MODEL = "E107"
    UNKNOWN_ENGINE = "E108"

    # Tuple errors (E2xx)
    UNKNOWN_FACTOR = "E201"
    INVALID_LEVEL = "E202"
    INCOMPLETE_ROW = "E203"
    DUPLICATE_ROW = "E204"

    # Generation outcomes (E3xx)
    PARTIAL_COVERAGE = "E301"

    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if code_num < 200:
            return "configuration"
        elif code_num < 300:
            return "tuple"
        elif code_num < 400:
            return "generation"
        else:
            return "unknown"


@dataclass
class ErrorContext:
    """Structured context describing where an error arose.

    Attributes:
        factor: Name of the factor involved, if any.
        strength: Coverage strength requested, if relevant.
        engine: Name of the engine that raised the error.
        extra: Additional context-specific information.
        timestamp: When the error occurred.
    """

    factor: str | None = None
    strength: int | None = None
    engine: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for serialization."""
        result = {
            "factor": self.factor,
            "strength": self.strength,
            "engine": self.engine,
            "extra": self.extra or None,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.engine:
            parts.append(f"engine={self.engine}")
        if self.factor:
            parts.append(f"factor={self.factor}")
        if self.strength is not None:
            parts.append(f"strength={self.strength}")
        return " > ".join(parts) if parts else "unknown location"


class CoverForgeError(Exception):
    """Base exception for all coverforge errors.

    Attributes:
        error_code: Unique ErrorCode for this error type
        message: Human-readable error description
        context: ErrorContext with details
        suggestions: List of actionable steps to resolve the issue
        cause: The underlying exception (if any)
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        if extra_context:
            self.context.extra.update(extra_context)

        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        """Get actionable suggestions for resolving this error."""
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            parts.append(f"at {location}")

        return " | ".join(parts)

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [
            f"Error [{self.error_code.value}]: {self.message}",
        ]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(CoverForgeError):
    """The generation request is malformed.

    Raised before any generation work starts. Common causes:
    - An empty factor space or a factor without levels
    - Duplicate factor names or duplicate levels
    - A strength outside [1, number of factors]
    - A non-positive trial budget
    """

    error_code = ErrorCode.INVALID_SETTING
    default_message = "Invalid generation configuration"
    default_suggestions = [
        "Check that every factor has a unique name and at least one level",
        "Keep strength between 1 and the number of factors",
        "Run 'coverforge generate --help' for the accepted options",
    ]


class InvalidTupleError(CoverForgeError):
    """A tuple does not fit the factor space.

    The tuple names a factor the space does not declare, assigns a level
    outside that factor's domain, or is not full where a full row is needed.
    """

    error_code = ErrorCode.INVALID_LEVEL
    default_message = "Tuple does not match the factor space"
    default_suggestions = [
        "Compare the tuple's keys with FactorSpace.names",
        "Check that every value is one of the factor's declared levels",
    ]


class DuplicateRowError(InvalidTupleError):
    """A row was appended to a test suite that already contains it."""

    error_code = ErrorCode.DUPLICATE_ROW
    default_message = "Row already present in the test suite"
    default_suggestions = []


class PartialCoverageWarning(UserWarning):
    """Generation stopped with target tuples still uncovered.

    Not fatal: the engine returns the best suite it built together with this
    warning. Whether residue counts as failure is the caller's decision.

    Attributes:
        residue: The target tuples left uncovered.
        engine: Name of the engine that gave up.
        strength: The coverage strength that was targeted.
    """

    error_code = ErrorCode.PARTIAL_COVERAGE

    def __init__(
        self,
        residue: list[Mapping[str, Hashable]],
        engine: str,
        strength: int,
    ) -> None:
        self.residue = list(residue)
        self.engine = engine
        self.strength = strength
        super().__init__(
            f"{engine} could not cover {len(self.residue)} "
            f"{strength}-way target tuple(s)"
        )

    @property
    def uncovered_count(self) -> int:
        return len(self.residue)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "engine": self.engine,
            "strength": self.strength,
            "uncovered_count": self.uncovered_count,
            "residue": [dict(t) for t in self.residue],
        }
