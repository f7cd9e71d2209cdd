"""Relational backend for norm.

Turns query templates into the four persistence capabilities::

    compile (template.py) -> prepare -> execute/query -> scan (scan.py)
                 │                          │
            dialect.py                 context.py (ambient transaction)

Modules
-------
adapter         SQLCreator/SQLReader/SQLUpdater/SQLDeleter + new_* factories
template        Jinja2 query templates -> (sql, params)
dialect         Placeholder styles and the process-wide default
scan            Strict row -> model scanning
context         with_transaction / current_transaction
adapters        SQLAlchemy and asyncpg drivers, open_database()
"""

from norm.sql.adapter import (
    SQLCreator,
    SQLDeleter,
    SQLReader,
    SQLUpdater,
    new_immutable_object,
    new_object,
    new_persistent_object,
    new_view,
)
from norm.sql.adapters import AsyncpgDatabase, DatabaseInfo, SQLAlchemyDatabase, open_database
from norm.sql.context import current_transaction, with_transaction
from norm.sql.dialect import Dialect, get_default_dialect, get_dialect, register_dialect, set_default_dialect
from norm.sql.scan import scan_all, scan_one
from norm.sql.template import CompiledStatement, SafeSQL, TemplateCompiler

__all__ = [
    # Capabilities
    "SQLCreator",
    "SQLReader",
    "SQLUpdater",
    "SQLDeleter",
    # Factories
    "new_object",
    "new_persistent_object",
    "new_immutable_object",
    "new_view",
    # Transactions
    "with_transaction",
    "current_transaction",
    # Templates
    "TemplateCompiler",
    "CompiledStatement",
    "SafeSQL",
    "Dialect",
    "get_dialect",
    "register_dialect",
    "set_default_dialect",
    "get_default_dialect",
    # Scanning
    "scan_one",
    "scan_all",
    # Drivers
    "SQLAlchemyDatabase",
    "AsyncpgDatabase",
    "DatabaseInfo",
    "open_database",
]
