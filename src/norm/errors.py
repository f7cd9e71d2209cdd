"""
Structured error types for norm.

Every failure the persistence layer can report is a :class:`NormError`. The
hierarchy is small on purpose: two *expected outcomes* that callers are meant
to branch on, one family per pipeline stage of the relational adapter, and
side-attributed fetch errors raised by the aggregation engine.

Manifesto:
    - **Outcomes are not defects:** ``NotFoundError`` and ``NotAffectedError``
      describe what the store said, not that something broke
    - **Stage attribution:** a failed statement says which stage failed
      (compile, prepare, execute, scan)
    - **Chain, never swallow:** the backend exception is kept as ``cause``
      and ``__cause__``
    - **No retries in the core:** ``retryable`` is reported, never acted on

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                          NormError                            │
        │         (category, retryable, context, cause)                 │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  NotFoundError        StatementError          FetchError      │
        │  NotAffectedError     (stage)                 (side)          │
        │  (RESULT)                 │                       │           │
        │                      TemplateCompileError    LeftFetchError   │
        │                      PrepareError            RightFetchError  │
        │                      ExecutionError                           │
        │                      ScanError                                │
        │                                                               │
        │  ConfigError          DatabaseConnectionError                 │
        └──────────────────────────────────────────────────────────────┘

Examples:
    Expected outcomes survive wrapping:

    >>> try:
    ...     await lookup(users, None, orders, None)
    ... except LeftFetchError as e:
    ...     if is_not_found(e):
    ...         ...

    Stage attribution:

    >>> try:
    ...     await obj.update(args, value)
    ... except StatementError as e:
    ...     e.stage
    'prepare'

Guardrails:
    ❌ DON'T: ``except Exception: pass`` around adapter calls
    ✅ DO: Branch on ``NotFoundError`` / ``NotAffectedError``, surface the rest

    ❌ DON'T: Compare messages to detect "not found"
    ✅ DO: Use ``is_not_found(exc)`` which walks the cause chain

Tags:
    error-handling, exception-hierarchy, error-context, norm

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

E = TypeVar("E", bound=BaseException)


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        RESULT: Expected store outcome (nothing found, nothing affected)
        TEMPLATE: Query template could not be compiled
        DATABASE: Prepare/execute failures reported by the backend
        SCAN: Result rows did not fit the destination model
        SOURCE: A source fetch failed inside an aggregation
        CONFIG: Missing or invalid configuration
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    RESULT = "RESULT"
    TEMPLATE = "TEMPLATE"
    DATABASE = "DATABASE"
    SCAN = "SCAN"
    SOURCE = "SOURCE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


class Stage(str, Enum):
    """Pipeline stage of the relational adapter."""

    COMPILE = "compile"
    PREPARE = "prepare"
    EXECUTE = "execute"
    SCAN = "scan"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        operation: Capability that failed (``create``, ``read``, ...)
        stage: Adapter pipeline stage
        side: Aggregation side (``left``, ``right``)
        model: Destination model name
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    stage: str | None = None
    side: str | None = None
    model: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "stage", "side", "model"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class NormError(Exception):
    """
    Base exception for all norm errors.

    Subclasses set ``default_category`` and ``default_retryable``. The
    optional ``cause`` is chained as ``__cause__`` so tracebacks and
    :func:`find_cause` see the original backend exception.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> NormError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ExecutionError("run query", cause=e).with_context(
                operation="read", model="User"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# EXPECTED OUTCOMES
# =============================================================================


class NotFoundError(NormError):
    """Scalar read matched zero rows."""

    default_category = ErrorCategory.RESULT

    def __init__(self, message: str = "not found", **kwargs: Any):
        super().__init__(message, **kwargs)


class NotAffectedError(NormError):
    """Write matched or affected zero rows."""

    default_category = ErrorCategory.RESULT

    def __init__(self, message: str = "not affected by create/update/delete", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# STATEMENT PIPELINE ERRORS
# =============================================================================


class StatementError(NormError):
    """
    Failure of one stage of the compile → prepare → execute → scan pipeline.

    ``stage`` names the stage; it is also recorded in ``context.stage``.
    """

    default_category = ErrorCategory.DATABASE
    stage: Stage | None = None

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        if self.stage is not None:
            self.context.stage = self.stage.value


class TemplateCompileError(StatementError):
    """Query template could not be compiled into a statement."""

    default_category = ErrorCategory.TEMPLATE
    stage = Stage.COMPILE


class PrepareError(StatementError):
    """Backend refused to prepare the compiled statement."""

    stage = Stage.PREPARE


class ExecutionError(StatementError):
    """Backend failed while executing the prepared statement."""

    stage = Stage.EXECUTE


class ScanError(StatementError):
    """Result rows could not be scanned into the destination model."""

    default_category = ErrorCategory.SCAN
    stage = Stage.SCAN


# =============================================================================
# AGGREGATION FETCH ERRORS
# =============================================================================


class FetchError(NormError):
    """A source fetch failed inside ``lookup`` or ``group``."""

    default_category = ErrorCategory.SOURCE
    side: str | None = None

    def __init__(self, message: str = "fetch", **kwargs: Any):
        super().__init__(message, **kwargs)
        if self.side is not None:
            self.context.side = self.side


class LeftFetchError(FetchError):
    """The left-hand source of ``lookup`` failed."""

    side = "left"

    def __init__(self, message: str = "fetch left", **kwargs: Any):
        super().__init__(message, **kwargs)


class RightFetchError(FetchError):
    """The right-hand source of ``lookup`` failed."""

    side = "right"

    def __init__(self, message: str = "fetch right", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# CONFIGURATION / CONNECTION ERRORS
# =============================================================================


class ConfigError(NormError):
    """
    Configuration error.
    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class DatabaseConnectionError(NormError):
    """Database driver missing or connection could not be established."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# HELPERS
# =============================================================================


def find_cause(error: BaseException, kind: type[E]) -> E | None:
    """Return the first exception of type ``kind`` in the cause chain.

    The chain starts with ``error`` itself and follows ``__cause__``.
    """
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, kind):
            return current
        seen.add(id(current))
        current = current.__cause__
    return None


def is_not_found(error: BaseException) -> bool:
    """Check whether ``error`` is, or wraps, a :class:`NotFoundError`."""
    return find_cause(error, NotFoundError) is not None


def is_not_affected(error: BaseException) -> bool:
    """Check whether ``error`` is, or wraps, a :class:`NotAffectedError`."""
    return find_cause(error, NotAffectedError) is not None


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, NormError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category for any exception."""
    if isinstance(error, NormError):
        return error.category
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "Stage",
    "ErrorContext",
    "NormError",
    "NotFoundError",
    "NotAffectedError",
    "StatementError",
    "TemplateCompileError",
    "PrepareError",
    "ExecutionError",
    "ScanError",
    "FetchError",
    "LeftFetchError",
    "RightFetchError",
    "ConfigError",
    "DatabaseConnectionError",
    "find_cause",
    "is_not_found",
    "is_not_affected",
    "is_retryable",
    "categorize_error",
]
