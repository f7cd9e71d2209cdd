"""End-to-end adapter tests against a file-backed SQLite database.

The ``db`` fixture (conftest) seeds ``tests`` with ``id01``/``id02`` and
``tests_2`` with ``id03``.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from norm.aggregation import Merge, lookup
from norm.errors import ExecutionError, NotAffectedError, NotFoundError, PrepareError, ScanError
from norm.sql import new_object, new_view, with_transaction
from tests._support.models import Args, FilterID, Model, ModelShort

CREATE = """
INSERT INTO "tests" ("id", "field_a", "field_b", "field_c", "created_at", "updated_at")
VALUES (
    {{ args.id }},
    {{ model.field_a }},
    {{ model.field_b }},
    {{ model.field_c }},
    {{ args.created_at.isoformat() }},
    {{ args.updated_at.isoformat() }}
)
"""

READ = """
SELECT "field_a", "field_b", "field_c"
FROM "tests"
WHERE "id" = {{ args.id }}
"""

UPDATE = """
UPDATE "tests"
SET "field_a" = {{ model.field_a }},
    "field_b" = {{ model.field_b }},
    "field_c" = {{ model.field_c }},
    "updated_at" = {{ args.updated_at.isoformat() }}
WHERE "id" = {{ args.id }}
"""

DELETE = """
DELETE FROM "tests" WHERE "id" = {{ args.id }}
"""


@pytest.fixture
def objects(db):
    return new_object(db, ModelShort, create=CREATE, read=READ, update=UPDATE, delete=DELETE, dialect="sqlite")


SHORT = ModelShort(field_a="a", field_b="b", field_c=1)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_then_read(self, objects):
        await objects.create(Args(id="qwerty"), SHORT)

        assert await objects.read(Args(id="qwerty")) == SHORT

    @pytest.mark.asyncio
    async def test_create_not_affected(self, db):
        copy = new_object(
            db,
            ModelShort,
            create="""
            INSERT INTO "tests_2" ("id", "field_a", "field_b", "field_c", "created_at", "updated_at")
            SELECT "id", "field_a", "field_b", "field_c", "created_at", "updated_at"
            FROM "tests_2"
            WHERE "id" = {{ args.id }}
            """,
            read="",
            update="",
            delete="",
            dialect="sqlite",
        )

        with pytest.raises(NotAffectedError):
            await copy.create(FilterID(id="not found"), None)

    @pytest.mark.asyncio
    async def test_duplicate_key_is_execution_error(self, objects):
        with pytest.raises(ExecutionError):
            await objects.create(Args(id="id01"), SHORT)


class TestRead:
    @pytest.mark.asyncio
    async def test_read_seeded_row(self, objects):
        assert await objects.read(Args(id="id02")) == ModelShort(field_a="aaaa", field_b="bbbb", field_c=4321)

    @pytest.mark.asyncio
    async def test_read_not_found(self, objects):
        with pytest.raises(NotFoundError):
            await objects.read(Args(id="qwerty123"))

    @pytest.mark.asyncio
    async def test_full_model_with_timestamps(self, db):
        view = new_view(db, Model, read='SELECT * FROM "tests" WHERE "id" = {{ args.id }}', dialect="sqlite")

        got = await view.read(FilterID(id="id01"))

        assert got.created_at == datetime(2001, 9, 28, 23, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_extra_columns_are_a_scan_error(self, db):
        view = new_view(db, ModelShort, read='SELECT * FROM "tests" WHERE "id" = {{ args.id }}', dialect="sqlite")

        with pytest.raises(ScanError):
            await view.read(FilterID(id="id01"))

    @pytest.mark.asyncio
    async def test_many_read(self, db):
        view = new_view(db, Model, read='SELECT * FROM "tests" ORDER BY "id"', many=True, dialect="sqlite")

        assert [m.id for m in await view.read(None)] == ["id01", "id02"]

    @pytest.mark.asyncio
    async def test_many_read_no_match_is_empty_list(self, db):
        view = new_view(
            db, Model, read='SELECT * FROM "tests" WHERE "id" = {{ args.id }}', many=True, dialect="sqlite"
        )

        assert await view.read(FilterID(id="missing")) == []

    @pytest.mark.asyncio
    async def test_unknown_table_is_statement_error(self, db):
        view = new_view(db, int, read='SELECT "n" FROM "nowhere"', dialect="sqlite")

        with pytest.raises((PrepareError, ExecutionError)):
            await view.read(None)


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update(self, objects):
        want = ModelShort(field_a="updated_a", field_b="updated_b", field_c=666)

        await objects.update(Args(id="id01"), want)

        assert await objects.read(Args(id="id01")) == want

    @pytest.mark.asyncio
    async def test_update_not_affected(self, objects):
        with pytest.raises(NotAffectedError):
            await objects.update(Args(id="missing"), SHORT)


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, objects):
        await objects.delete(Args(id="id01"))

        with pytest.raises(NotFoundError):
            await objects.read(Args(id="id01"))

    @pytest.mark.asyncio
    async def test_delete_not_affected(self, objects):
        with pytest.raises(NotAffectedError):
            await objects.delete(Args(id="missing"))


class TestTransactions:
    @pytest.mark.asyncio
    async def test_uncommitted_delete_is_invisible_to_another_transaction(self, db, objects):
        async with db.begin() as t1:
            with with_transaction(t1):
                await objects.delete(Args(id="id01"))
                with pytest.raises(NotFoundError):
                    await objects.read(Args(id="id01"))

            async with db.begin() as t2:
                with with_transaction(t2):
                    assert await objects.read(Args(id="id01")) == ModelShort(field_a="a", field_b="b", field_c=1234)

        async with db.begin() as t2:
            with with_transaction(t2):
                with pytest.raises(NotFoundError):
                    await objects.read(Args(id="id01"))

    @pytest.mark.asyncio
    async def test_rollback_discards_writes(self, db, objects):
        with pytest.raises(RuntimeError):
            async with db.begin() as tx:
                with with_transaction(tx):
                    await objects.update(Args(id="id02"), SHORT)
                raise RuntimeError("abort")

        assert (await objects.read(Args(id="id02"))).field_a == "aaaa"


class TestLookupAcrossTables:
    @pytest.mark.asyncio
    async def test_lookup_joins_two_views(self, db):
        class Keyed(Model):
            def key(self) -> str:
                return self.field_a[:2]

        left = new_view(db, Keyed, read='SELECT * FROM "tests" ORDER BY "id"', many=True, dialect="sqlite")
        right = new_view(db, Keyed, read='SELECT * FROM "tests_2"', many=True, dialect="sqlite")

        merged = await lookup(left, None, right, None)

        assert [m.left.id for m in merged] == ["id01", "id02"]
        assert merged[0].right is None
        assert [r.id for r in merged[1].right] == ["id03"]
        assert isinstance(merged[0], Merge)
