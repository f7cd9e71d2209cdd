"""
norm - generic persistence capabilities and keyed aggregation.

Application code depends on four single-method capabilities (``Creator``,
``Reader``, ``Updater``, ``Deleter``) and on the composites built from them
(``Object``, ``PersistentObject``, ``ImmutableObject``, ``View``). The
aggregation functions ``lookup`` and ``group`` combine result sets fetched
from any ``Reader``. ``norm.sql`` realizes the capabilities over a
relational database from query templates.

Usage::

    from norm import lookup, is_not_found
    from norm.sql import new_object, with_transaction, open_database
"""

__version__ = "0.1.0"

from norm.aggregation import Merge, group, group_by_key, lookup, merge_by_key
from norm.errors import (
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    ExecutionError,
    FetchError,
    LeftFetchError,
    NormError,
    NotAffectedError,
    NotFoundError,
    PrepareError,
    RightFetchError,
    ScanError,
    Stage,
    StatementError,
    TemplateCompileError,
    find_cause,
    is_not_affected,
    is_not_found,
)
from norm.objects import ImmutableObject, Object, PersistentObject, View
from norm.protocols import Creator, Database, Deleter, Keyable, Reader, RowSet, Source, Statement, Updater

__all__ = [
    "__version__",
    # Protocols
    "Keyable",
    "Creator",
    "Reader",
    "Source",
    "Updater",
    "Deleter",
    "Database",
    "Statement",
    "RowSet",
    # Composites
    "Object",
    "PersistentObject",
    "ImmutableObject",
    "View",
    # Aggregation
    "Merge",
    "lookup",
    "group",
    "merge_by_key",
    "group_by_key",
    # Errors
    "NormError",
    "ErrorCategory",
    "ErrorContext",
    "Stage",
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
]
