"""Query template compilation.

A query template is Jinja2 text rendered against an *envelope*: ``args``
for reads, ``model`` and ``args`` for writes. Every ``{{ expression }}``
becomes one positional placeholder in the dialect's style, and its value is
appended to the parameter list in the order the expressions are output, so
values never reach the SQL text.

::

    UPDATE "users"
    SET "name" = {{ model.name }}
    WHERE "id" = {{ args.id }}
                    │ compile(dialect=postgresql)
                    ▼
    UPDATE "users" SET "name" = $1 WHERE "id" = $2      params=("Ann", "u1")

Filters:
    ``sqlsafe``   emit the value verbatim (identifiers, ``ASC``/``DESC``);
                  never use it on user input
    ``inclause``  expand a sequence into ``($1, $2, ...)``, binding each item

Control structures (``{% if %}``, ``{% for %}``) work as usual. Undefined
names and attributes fail compilation instead of rendering empty.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from jinja2 import Environment, StrictUndefined, Template, TemplateError, Undefined, pass_context
from jinja2.runtime import Context

from norm.errors import TemplateCompileError
from norm.logging import get_logger
from norm.sql.dialect import Dialect, get_default_dialect, get_dialect

logger = get_logger(__name__)

_BINDER_KEY = "__norm_binder__"


class SafeSQL(str):
    """SQL fragment emitted verbatim by the template compiler."""


@dataclass(frozen=True)
class CompiledStatement:
    """Raw statement text plus its positional parameters."""

    sql: str
    params: tuple[Any, ...]


class _Binder:
    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.params: list[Any] = []

    def bind(self, value: Any) -> str:
        placeholder = self.dialect.placeholder(len(self.params))
        self.params.append(value)
        return placeholder


@pass_context
def _finalize(context: Context, value: Any) -> str:
    if isinstance(value, SafeSQL):
        return value
    if isinstance(value, Undefined):
        # StrictUndefined raises with the missing name
        str(value)
        raise TemplateError("undefined value in template")
    return context[_BINDER_KEY].bind(value)


def _sqlsafe(value: Any) -> SafeSQL:
    return SafeSQL(value)


@pass_context
def _inclause(context: Context, values: Iterable[Any]) -> SafeSQL:
    items = list(values)
    if not items:
        raise TemplateError("inclause requires at least one value")
    binder: _Binder = context[_BINDER_KEY]
    return SafeSQL("(" + ", ".join(binder.bind(item) for item in items) + ")")


def _make_environment() -> Environment:
    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        finalize=_finalize,
        keep_trailing_newline=True,
    )
    env.filters["sqlsafe"] = _sqlsafe
    env.filters["inclause"] = _inclause
    return env


class TemplateCompiler:
    """Compile query templates into parameterized statements.

    Parsed templates are cached per compiler instance. When ``dialect`` is
    omitted the process-wide default is read at every ``compile`` call, so a
    compiler built before :func:`set_default_dialect` still follows it.
    """

    def __init__(self, dialect: str | Dialect | None = None) -> None:
        self._dialect = get_dialect(dialect) if dialect is not None else None
        self._env = _make_environment()
        self._cache: dict[str, Template] = {}

    @property
    def dialect(self) -> Dialect:
        return self._dialect or get_default_dialect()

    def compile(self, template: str, **envelope: Any) -> CompiledStatement:
        """Render ``template`` against ``envelope``.

        Raises:
            TemplateCompileError: syntax error, undefined name, or a failure
                raised while evaluating an expression
        """
        binder = _Binder(self.dialect)
        try:
            tpl = self._cache.get(template)
            if tpl is None:
                tpl = self._env.from_string(template)
                self._cache[template] = tpl
            sql = tpl.render({**envelope, _BINDER_KEY: binder})
        except TemplateError as e:
            raise TemplateCompileError("compile query template", cause=e) from e
        except Exception as e:
            raise TemplateCompileError("evaluate query template", cause=e) from e

        compiled = CompiledStatement(sql=sql, params=tuple(binder.params))
        logger.debug(
            "statement_compiled",
            dialect=binder.dialect.name,
            params=len(compiled.params),
        )
        return compiled


__all__ = [
    "SafeSQL",
    "CompiledStatement",
    "TemplateCompiler",
]
