"""Tests for norm.sql.dialect placeholder styles."""

import pytest

from norm.errors import ConfigError
from norm.sql.dialect import (
    Dialect,
    MSSQLDialect,
    MySQLDialect,
    OracleDialect,
    PostgreSQLDialect,
    PsycopgDialect,
    SQLiteDialect,
    get_default_dialect,
    get_dialect,
    register_dialect,
    set_default_dialect,
)


class TestPlaceholders:
    @pytest.mark.parametrize(
        ("dialect", "expected"),
        [
            (SQLiteDialect(), "?, ?, ?"),
            (PostgreSQLDialect(), "$1, $2, $3"),
            (PsycopgDialect(), "%s, %s, %s"),
            (MySQLDialect(), "%s, %s, %s"),
            (OracleDialect(), ":1, :2, :3"),
            (MSSQLDialect(), "@p1, @p2, @p3"),
        ],
    )
    def test_placeholders(self, dialect, expected):
        assert dialect.placeholders(3) == expected

    def test_zero_placeholders(self):
        assert PostgreSQLDialect().placeholders(0) == ""

    def test_dialects_satisfy_protocol(self):
        assert isinstance(SQLiteDialect(), Dialect)


class TestRegistry:
    def test_lookup_is_case_insensitive(self):
        assert isinstance(get_dialect("SQLite"), SQLiteDialect)
        assert isinstance(get_dialect("postgres"), PostgreSQLDialect)

    def test_instance_passes_through(self):
        dialect = OracleDialect()
        assert get_dialect(dialect) is dialect

    def test_unknown_dialect(self):
        with pytest.raises(ConfigError, match="Unknown dialect 'db9'"):
            get_dialect("db9")

    def test_register_dialect(self):
        class QuestionDialect(SQLiteDialect):
            name = "question"

        register_dialect("Question", QuestionDialect)
        assert isinstance(get_dialect("question"), QuestionDialect)


class TestDefault:
    def test_default_is_postgresql(self):
        assert get_default_dialect().name == "postgresql"

    def test_set_default(self):
        returned = set_default_dialect("sqlite")
        assert isinstance(returned, SQLiteDialect)
        assert get_default_dialect() is returned
