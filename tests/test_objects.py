"""Tests for norm.objects composites."""

from __future__ import annotations

import dataclasses
from typing import Generic

import pytest

from norm.objects import ImmutableObject, Object, PersistentObject, View
from norm.protocols import Creator, Deleter, Reader, Updater
from tests._support.fakes import FailingReader, RecordingCapability


class TestObject:
    @pytest.mark.asyncio
    async def test_forwards_every_capability(self):
        cap = RecordingCapability(result="value")
        obj = Object(creator=cap, reader=cap, updater=cap, deleter=cap)

        await obj.create("a", 1)
        assert await obj.read("a") == "value"
        await obj.update("a", 2)
        await obj.delete("a")

        assert cap.calls == [
            ("create", ("a", 1)),
            ("read", ("a",)),
            ("update", ("a", 2)),
            ("delete", ("a",)),
        ]

    @pytest.mark.asyncio
    async def test_single_capability_can_be_replaced(self):
        real = RecordingCapability()
        obj = Object(creator=real, reader=real, updater=real, deleter=real)

        flaky = dataclasses.replace(obj, reader=FailingReader(RuntimeError("boom")))

        with pytest.raises(RuntimeError, match="boom"):
            await flaky.read("a")
        await flaky.update("a", 1)
        assert real.calls == [("update", ("a", 1))]

    def test_is_frozen(self):
        cap = RecordingCapability()
        obj = Object(creator=cap, reader=cap, updater=cap, deleter=cap)

        with pytest.raises(dataclasses.FrozenInstanceError):
            obj.reader = cap  # type: ignore[misc]

    def test_satisfies_capability_protocols(self):
        cap = RecordingCapability()
        obj = Object(creator=cap, reader=cap, updater=cap, deleter=cap)

        assert isinstance(obj, Creator)
        assert isinstance(obj, Reader)
        assert isinstance(obj, Updater)
        assert isinstance(obj, Deleter)


class TestNarrowShapes:
    def test_persistent_object_has_no_delete(self):
        cap = RecordingCapability()
        obj = PersistentObject(creator=cap, reader=cap, updater=cap)

        assert not hasattr(obj, "delete")
        assert not isinstance(obj, Deleter)

    def test_immutable_object_is_create_and_read(self):
        cap = RecordingCapability()
        obj = ImmutableObject(creator=cap, reader=cap)

        assert isinstance(obj, Creator)
        assert isinstance(obj, Reader)
        assert not hasattr(obj, "update")
        assert not hasattr(obj, "delete")

    @pytest.mark.asyncio
    async def test_view_is_read_only(self):
        cap = RecordingCapability(result=[1, 2])
        view = View(reader=cap)

        assert await view.read(None) == [1, 2]
        for method in ("create", "update", "delete"):
            assert not hasattr(view, method)


class TestComposition:
    @pytest.mark.parametrize("shape", [Object, PersistentObject, ImmutableObject, View])
    def test_shapes_share_no_base_class(self, shape):
        assert shape.__bases__ == (Generic,)

    def test_methods_are_declared_on_each_shape(self):
        assert "delete" in vars(Object)
        assert {"create", "read", "update"} <= set(vars(PersistentObject))
        assert {"create", "read"} <= set(vars(ImmutableObject))
        assert set(vars(View)) >= {"read"}
