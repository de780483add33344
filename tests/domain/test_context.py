from __future__ import annotations

import asyncio
import threading

import pytest

from lib_log_seq.domain.context import DEFAULT_BINDER, PropertyBinder


def test_bind_merges_nested_frames() -> None:
    binder = PropertyBinder()

    with binder.bind(RequestId="r-1", Tenant="acme"):
        with binder.bind(Tenant="globex", Step=2) as frame:
            assert dict(frame) == {"RequestId": "r-1", "Tenant": "globex", "Step": 2}
            assert binder.current() is frame
        assert dict(binder.current()) == {"RequestId": "r-1", "Tenant": "acme"}

    assert dict(binder.current()) == {}


def test_bound_frames_are_read_only() -> None:
    binder = PropertyBinder()

    with binder.bind(RequestId="r-1"):
        with pytest.raises(TypeError):
            binder.current()["RequestId"] = "changed"  # type: ignore[index]


def test_bind_restores_previous_frame_after_error() -> None:
    binder = PropertyBinder()

    with binder.bind(Outer=True):
        with pytest.raises(RuntimeError):
            with binder.bind(Inner=True):
                raise RuntimeError("boom")
        assert dict(binder.current()) == {"Outer": True}


def test_clear_drops_all_bindings() -> None:
    binder = PropertyBinder()

    with binder.bind(RequestId="r-1"):
        binder.clear()
        assert dict(binder.current()) == {}


def test_bindings_do_not_leak_between_threads() -> None:
    binder = PropertyBinder()
    seen: dict[str, object] = {}

    def worker() -> None:
        seen["worker"] = dict(binder.current())

    with binder.bind(RequestId="main-thread"):
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

    assert seen["worker"] == {}


def test_bindings_are_isolated_per_task() -> None:
    binder = PropertyBinder()

    async def tagged(tag: str) -> dict[str, object]:
        with binder.bind(Task=tag):
            await asyncio.sleep(0)
            return dict(binder.current())

    async def run_all() -> list[dict[str, object]]:
        return await asyncio.gather(tagged("a"), tagged("b"))

    assert asyncio.run(run_all()) == [{"Task": "a"}, {"Task": "b"}]


def test_default_binder_is_shared_instance() -> None:
    from lib_log_seq import bind

    with bind(Tenant="acme"):
        assert dict(DEFAULT_BINDER.current()) == {"Tenant": "acme"}
