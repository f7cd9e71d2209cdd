"""
Relational backend adapter.

Realizes the four capabilities against any :class:`~norm.protocols.Database`
by compiling one query template per capability and running it through a
fixed pipeline:

::

    resolve ambient transaction (or pool)
        │
        ▼
    compile template ──► TemplateCompileError
        │   writes: {model, args}   reads: {args}
        ▼
    prepare ──────────► PrepareError
        │
        ▼
    execute / query ──► ExecutionError
        │
        ├─ writes: rows affected <= 0 ──► NotAffectedError
        │
        └─ reads:  many=True  → scan_all  (no rows → [])
                   many=False → scan_one  (no rows → NotFoundError)
                                          (mismatch → ScanError)

The adapter never retries and never manages the transaction it runs in.
``asyncio.CancelledError`` passes through unwrapped, and the prepared
statement is closed on every path. A close that fails after a successful
execute surfaces as ``ExecutionError``; after a failed one it is logged
as ``statement_close_failed`` and the original error is raised.

Examples:
    >>> users = new_object(
    ...     db, User,
    ...     create='INSERT INTO "users" ("id", "name") VALUES ({{ args.id }}, {{ model.name }})',
    ...     read='SELECT "id", "name" FROM "users" WHERE "id" = {{ args.id }}',
    ...     update='UPDATE "users" SET "name" = {{ model.name }} WHERE "id" = {{ args.id }}',
    ...     delete='DELETE FROM "users" WHERE "id" = {{ args.id }}',
    ... )
    >>> await users.create(UserID("u1"), User(id="u1", name="Ann"))
    >>> everyone = new_view(db, User, read='SELECT "id", "name" FROM "users"', many=True)

Tags:
    adapter, sql, template, pipeline, crud, norm

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from norm.errors import (
    ExecutionError,
    NormError,
    NotAffectedError,
    NotFoundError,
    PrepareError,
    ScanError,
    TemplateCompileError,
)
from norm.logging import get_logger
from norm.objects import ImmutableObject, Object, PersistentObject, View
from norm.protocols import Database, RowSet, Statement
from norm.sql.context import current_transaction
from norm.sql.dialect import Dialect
from norm.sql.scan import NoRowsError, resolve_adapter, scan_all, scan_one
from norm.sql.template import CompiledStatement, TemplateCompiler

logger = get_logger(__name__)

M = TypeVar("M")
A = TypeVar("A")
E = TypeVar("E", bound=NormError)


class _Pipeline(Generic[M, A]):
    """Template + database shared by every capability adapter."""

    operation = ""

    def __init__(
        self,
        db: Database,
        template: str,
        model: Any,
        *,
        compiler: TemplateCompiler | None = None,
    ) -> None:
        self._db = db
        self._template = template
        self._model = model
        self._model_name = getattr(model, "__name__", repr(model))
        self._compiler = compiler or TemplateCompiler()

    def _compile(self, **envelope: Any) -> CompiledStatement:
        try:
            return self._compiler.compile(self._template, **envelope)
        except TemplateCompileError as e:
            self._annotate(e)
            raise

    async def _prepare(self, compiled: CompiledStatement) -> Statement:
        tx = current_transaction()
        try:
            return await self._db.prepare(compiled.sql, tx=tx)
        except Exception as e:
            raise self._annotate(PrepareError("prepare query", cause=e)) from e

    async def _execute(self, compiled: CompiledStatement) -> int | None:
        stmt = await self._prepare(compiled)
        try:
            affected = await stmt.execute(compiled.params)
        except Exception as e:
            await self._close_after_failure(stmt)
            raise self._annotate(ExecutionError("execute statement", cause=e)) from e
        except BaseException:
            await self._close_after_failure(stmt)
            raise
        await self._close(stmt)
        return affected

    async def _query(self, compiled: CompiledStatement) -> RowSet:
        stmt = await self._prepare(compiled)
        try:
            rows = await stmt.query(compiled.params)
        except Exception as e:
            await self._close_after_failure(stmt)
            raise self._annotate(ExecutionError("run query", cause=e)) from e
        except BaseException:
            await self._close_after_failure(stmt)
            raise
        await self._close(stmt)
        return rows

    async def _close(self, stmt: Statement) -> None:
        try:
            await stmt.close()
        except Exception as e:
            raise self._annotate(ExecutionError("close statement", cause=e)) from e

    async def _close_after_failure(self, stmt: Statement) -> None:
        # the in-flight error wins; a close failure is only logged
        try:
            await stmt.close()
        except Exception as e:
            logger.warning(
                "statement_close_failed",
                operation=self.operation,
                model=self._model_name,
                error=repr(e),
            )

    def _annotate(self, error: E) -> E:
        error.with_context(operation=self.operation, model=self._model_name)
        return error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self._model_name})"


class _Writer(_Pipeline[M, A]):
    async def _affect(self, args: A, value: M | None) -> None:
        compiled = self._compile(model=value, args=args)
        affected = await self._execute(compiled)
        logger.debug(
            "statement_executed",
            operation=self.operation,
            model=self._model_name,
            affected=affected,
        )
        if affected is not None and affected <= 0:
            logger.debug("write_not_affected", operation=self.operation, model=self._model_name)
            raise self._annotate(NotAffectedError())


class SQLCreator(_Writer[M, A]):
    operation = "create"

    async def create(self, args: A, value: M) -> None:
        await self._affect(args, value)


class SQLUpdater(_Writer[M, A]):
    operation = "update"

    async def update(self, args: A, value: M) -> None:
        await self._affect(args, value)


class SQLDeleter(_Writer[M, A]):
    operation = "delete"

    async def delete(self, args: A) -> None:
        await self._affect(args, None)


class SQLReader(_Pipeline[M, A]):
    """Reader capability.

    ``many`` is declared by the caller: ``True`` scans every row into a
    list of ``model``, ``False`` scans exactly one ``model`` value.
    A ``model`` pydantic cannot validate into is rejected here, as a
    :class:`~norm.errors.ScanError`.
    """

    operation = "read"

    def __init__(
        self,
        db: Database,
        template: str,
        model: Any,
        *,
        many: bool = False,
        compiler: TemplateCompiler | None = None,
    ) -> None:
        super().__init__(db, template, model, compiler=compiler)
        self._many = many
        try:
            resolve_adapter(model)
        except ScanError as e:
            self._annotate(e)
            raise

    @property
    def many(self) -> bool:
        return self._many

    async def read(self, args: A) -> M:
        compiled = self._compile(args=args)
        rows = await self._query(compiled)
        logger.debug(
            "rows_scanned",
            operation=self.operation,
            model=self._model_name,
            rows=len(rows),
            many=self._many,
        )

        if self._many:
            try:
                return scan_all(self._model, rows)  # type: ignore[return-value]
            except ScanError as e:
                self._annotate(e)
                raise

        try:
            return scan_one(self._model, rows)
        except NoRowsError as e:
            logger.debug("read_not_found", model=self._model_name)
            raise self._annotate(NotFoundError(cause=e)) from e
        except ScanError as e:
            self._annotate(e)
            raise


# ── Factories ────────────────────────────────────────────────────────────


def _compiler(compiler: TemplateCompiler | None, dialect: str | Dialect | None) -> TemplateCompiler:
    return compiler or TemplateCompiler(dialect)


def new_object(
    db: Database,
    model: Any,
    *,
    create: str,
    read: str,
    update: str,
    delete: str,
    many: bool = False,
    dialect: str | Dialect | None = None,
    compiler: TemplateCompiler | None = None,
) -> Object[Any, Any]:
    """Build an :class:`~norm.objects.Object` over ``db``."""
    c = _compiler(compiler, dialect)
    return Object(
        creator=SQLCreator(db, create, model, compiler=c),
        reader=SQLReader(db, read, model, many=many, compiler=c),
        updater=SQLUpdater(db, update, model, compiler=c),
        deleter=SQLDeleter(db, delete, model, compiler=c),
    )


def new_persistent_object(
    db: Database,
    model: Any,
    *,
    create: str,
    read: str,
    update: str,
    many: bool = False,
    dialect: str | Dialect | None = None,
    compiler: TemplateCompiler | None = None,
) -> PersistentObject[Any, Any]:
    """Build a :class:`~norm.objects.PersistentObject` (no delete) over ``db``."""
    c = _compiler(compiler, dialect)
    return PersistentObject(
        creator=SQLCreator(db, create, model, compiler=c),
        reader=SQLReader(db, read, model, many=many, compiler=c),
        updater=SQLUpdater(db, update, model, compiler=c),
    )


def new_immutable_object(
    db: Database,
    model: Any,
    *,
    create: str,
    read: str,
    many: bool = False,
    dialect: str | Dialect | None = None,
    compiler: TemplateCompiler | None = None,
) -> ImmutableObject[Any, Any]:
    """Build an :class:`~norm.objects.ImmutableObject` (create + read) over ``db``."""
    c = _compiler(compiler, dialect)
    return ImmutableObject(
        creator=SQLCreator(db, create, model, compiler=c),
        reader=SQLReader(db, read, model, many=many, compiler=c),
    )


def new_view(
    db: Database,
    model: Any,
    *,
    read: str,
    many: bool = False,
    dialect: str | Dialect | None = None,
    compiler: TemplateCompiler | None = None,
) -> View[Any, Any]:
    """Build a read-only :class:`~norm.objects.View` over ``db``."""
    return View(reader=SQLReader(db, read, model, many=many, compiler=_compiler(compiler, dialect)))


__all__ = [
    "SQLCreator",
    "SQLReader",
    "SQLUpdater",
    "SQLDeleter",
    "new_object",
    "new_persistent_object",
    "new_immutable_object",
    "new_view",
]
