"""Database drivers for the relational adapter.

Architecture::

    Database (norm.protocols)        prepare(sql, tx=None) -> Statement
        |-- SQLAlchemyDatabase       AsyncEngine; exec_driver_sql
        |-- AsyncpgDatabase          asyncpg.Pool; server-side prepare

    open_database(url)               URL routing -> (Database, DatabaseInfo)

Drivers are import-guarded: asyncpg and aiosqlite are only needed when a
URL that uses them is opened. Install the matching extra::

    pip install norm[postgresql]   # asyncpg
    pip install norm[sqlite]       # aiosqlite
"""

from .alchemy import SQLAlchemyDatabase, SQLAlchemyStatement
from .connection import DatabaseInfo, open_database
from .postgresql import AsyncpgDatabase, AsyncpgStatement, rows_affected

__all__ = [
    "SQLAlchemyDatabase",
    "SQLAlchemyStatement",
    "AsyncpgDatabase",
    "AsyncpgStatement",
    "rows_affected",
    "DatabaseInfo",
    "open_database",
]
