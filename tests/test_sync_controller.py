# tests/test_sync_controller.py

from __future__ import annotations

import asyncio

import pytest

from todolist_client.api.client import RemoteOperationError
from todolist_client.core.models import NotificationLevel, TaskRecord
from todolist_client.notify.emitter import NotificationEmitter
from todolist_client.sync.controller import SyncController

from .fakes import FakeTodoApi, NotificationRecorder


def _controller(api: FakeTodoApi, *, start_ms: int = 1_000) -> tuple[SyncController, NotificationEmitter]:
    emitter = NotificationEmitter(timeout_seconds=0)
    ticks = iter(range(start_ms, start_ms + 10_000))
    return SyncController(api, emitter, clock=lambda: next(ticks)), emitter


@pytest.mark.asyncio
async def test_add_appends_one_open_task_and_sends_create() -> None:
    api = FakeTodoApi()
    ctrl, emitter = _controller(api)

    rec = ctrl.add("Buy milk")

    assert rec is not None
    assert ctrl.tasks == (TaskRecord(id=rec.id, title="Buy milk", done=False),)
    # Local state is applied before the request even starts.
    assert api.calls == []

    await ctrl.drain()
    assert api.calls == [("create", "Buy milk")]
    assert emitter.current is not None
    assert emitter.current.level == NotificationLevel.SUCCESS
    assert emitter.current.text == "Todo created"


@pytest.mark.asyncio
@pytest.mark.parametrize("title", ["", "   ", "\t\n"])
async def test_add_blank_title_is_a_noop(title: str) -> None:
    api = FakeTodoApi()
    ctrl, emitter = _controller(api)
    ctrl.add("keep")
    await ctrl.drain()
    before = ctrl.tasks

    assert ctrl.add(title) is None
    await ctrl.drain()

    assert ctrl.tasks is before
    assert api.ops() == ["create"]


@pytest.mark.asyncio
async def test_toggle_flips_done_only_and_keeps_order() -> None:
    api = FakeTodoApi()
    ctrl, _ = _controller(api)
    a = ctrl.add("a")
    b = ctrl.add("b")
    c = ctrl.add("c")
    assert a and b and c

    updated = ctrl.toggle(b.id)

    assert updated == TaskRecord(id=b.id, title="b", done=True)
    assert [t.id for t in ctrl.tasks] == [a.id, b.id, c.id]
    assert [t.done for t in ctrl.tasks] == [False, True, False]

    await ctrl.drain()
    assert ("update_done", b.id, True) in api.calls

    ctrl.toggle(b.id)
    await ctrl.drain()
    assert api.calls[-1] == ("update_done", b.id, False)
    assert ctrl.get(b.id) == TaskRecord(id=b.id, title="b", done=False)


@pytest.mark.asyncio
async def test_delete_removes_exactly_that_task() -> None:
    api = FakeTodoApi()
    ctrl, _ = _controller(api)
    a = ctrl.add("a")
    b = ctrl.add("b")
    assert a and b

    assert ctrl.delete(a.id) is True

    assert ctrl.tasks == (b,)
    await ctrl.drain()
    assert api.calls[-1] == ("delete", a.id)


@pytest.mark.asyncio
async def test_rename_replaces_title_and_leaves_edit_mode() -> None:
    api = FakeTodoApi()
    ctrl, _ = _controller(api)
    rec = ctrl.add("old")
    assert rec
    ctrl.toggle(rec.id)

    assert ctrl.begin_edit(rec.id)
    assert ctrl.edit_session.is_editing(rec.id)
    assert ctrl.edit_session.buffer == "old"

    ctrl.set_edit_buffer("new")
    renamed = ctrl.save_edit()

    assert renamed == TaskRecord(id=rec.id, title="new", done=True)
    assert not ctrl.edit_session.active
    assert ctrl.edit_session.target_id is None
    await ctrl.drain()
    assert api.calls[-1] == ("update_title", rec.id, "new")


@pytest.mark.asyncio
async def test_rename_allows_empty_title() -> None:
    api = FakeTodoApi()
    ctrl, _ = _controller(api)
    rec = ctrl.add("something")
    assert rec

    renamed = ctrl.rename(rec.id, "")

    assert renamed is not None and renamed.title == ""
    await ctrl.drain()
    assert api.calls[-1] == ("update_title", rec.id, "")


@pytest.mark.asyncio
async def test_cancel_edit_returns_to_viewing_without_requests() -> None:
    api = FakeTodoApi()
    ctrl, _ = _controller(api)
    rec = ctrl.add("title")
    assert rec
    await ctrl.drain()

    ctrl.begin_edit(rec.id)
    ctrl.set_edit_buffer("changed")
    assert ctrl.cancel_edit() is True

    assert not ctrl.edit_session.active
    assert ctrl.get(rec.id) == rec
    assert ctrl.save_edit() is None
    assert ctrl.cancel_edit() is False
    assert api.ops() == ["create"]


@pytest.mark.asyncio
async def test_begin_edit_switches_target() -> None:
    ctrl, _ = _controller(FakeTodoApi())
    a = ctrl.add("a")
    b = ctrl.add("b")
    assert a and b

    ctrl.begin_edit(a.id)
    ctrl.begin_edit(b.id)

    assert ctrl.edit_session.target_id == b.id
    assert ctrl.edit_session.buffer == "b"
    assert ctrl.begin_edit(999_999) is False


@pytest.mark.asyncio
async def test_end_to_end_scenario() -> None:
    api = FakeTodoApi()
    ctrl, _ = _controller(api)
    assert ctrl.tasks == ()

    rec = ctrl.add("Buy milk")
    assert rec
    assert [(t.title, t.done) for t in ctrl.tasks] == [("Buy milk", False)]

    ctrl.toggle(rec.id)
    assert ctrl.tasks[0].done is True

    ctrl.begin_edit(rec.id)
    ctrl.set_edit_buffer("Buy oat milk")
    ctrl.save_edit()
    assert [(t.title, t.done) for t in ctrl.tasks] == [("Buy oat milk", True)]

    ctrl.delete(rec.id)
    assert ctrl.tasks == ()

    await ctrl.drain()
    assert api.ops() == ["create", "update_done", "update_title", "delete"]


@pytest.mark.asyncio
async def test_failed_create_keeps_optimistic_task() -> None:
    api = FakeTodoApi()
    api.fail["create"] = RemoteOperationError("create", "Network error: connection refused")
    ctrl, emitter = _controller(api)
    recorder = NotificationRecorder()
    emitter.subscribe(recorder)

    rec = ctrl.add("Buy milk")
    await ctrl.drain()

    assert ctrl.tasks == (rec,)
    assert recorder.shown()[-1].level == NotificationLevel.ERROR
    assert recorder.shown()[-1].text == "Network error: connection refused"


@pytest.mark.asyncio
async def test_failures_never_roll_back_toggle_or_delete() -> None:
    api = FakeTodoApi()
    ctrl, emitter = _controller(api)
    a = ctrl.add("a")
    b = ctrl.add("b")
    assert a and b
    await ctrl.drain()

    api.fail["update_done"] = RemoteOperationError("update", "Request failed with status code 400")
    api.fail["delete"] = RemoteOperationError("delete", "Request failed with status code 500")

    ctrl.toggle(a.id)
    ctrl.delete(b.id)
    await ctrl.drain()

    assert ctrl.tasks == (TaskRecord(id=a.id, title="a", done=True),)
    assert emitter.current is not None
    assert emitter.current.level == NotificationLevel.ERROR


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_error_notification() -> None:
    api = FakeTodoApi()
    api.fail["create"] = RuntimeError("boom")
    ctrl, emitter = _controller(api)

    ctrl.add("x")
    await ctrl.drain()

    assert len(ctrl.tasks) == 1
    assert emitter.current is not None
    assert emitter.current.level == NotificationLevel.ERROR
    assert emitter.current.text == "boom"


@pytest.mark.asyncio
async def test_load_replaces_local_list() -> None:
    server = [TaskRecord(id=1, title="from server", done=True), TaskRecord(id=2, title="two")]
    api = FakeTodoApi(server)
    ctrl, emitter = _controller(api)

    ctrl.load()
    assert ctrl.tasks == ()
    await ctrl.drain()

    assert ctrl.tasks == tuple(server)
    # A successful load is silent.
    assert emitter.current is None


@pytest.mark.asyncio
async def test_load_failure_leaves_list_empty_and_notifies() -> None:
    api = FakeTodoApi([TaskRecord(id=1, title="unreachable")])
    api.fail["list"] = RemoteOperationError("list", "Network error: timed out")
    ctrl, emitter = _controller(api)

    assert await ctrl.refresh() is False

    assert ctrl.tasks == ()
    assert emitter.current is not None
    assert emitter.current.level == NotificationLevel.ERROR
    assert emitter.current.text == "Network error: timed out"
    assert api.ops() == ["list"]


@pytest.mark.asyncio
async def test_each_mutation_replaces_the_list_reference() -> None:
    ctrl, _ = _controller(FakeTodoApi())
    rec = ctrl.add("a")
    assert rec
    snapshot = ctrl.tasks

    ctrl.toggle(rec.id)

    assert ctrl.tasks is not snapshot
    assert snapshot == (rec,)
    await ctrl.drain()


@pytest.mark.asyncio
async def test_unknown_id_is_ignored_without_request() -> None:
    api = FakeTodoApi()
    ctrl, _ = _controller(api)
    rec = ctrl.add("a")
    assert rec
    await ctrl.drain()
    before = ctrl.tasks

    assert ctrl.toggle(rec.id + 12345) is None
    assert ctrl.rename(rec.id + 12345, "x") is None
    assert ctrl.delete(rec.id + 12345) is False
    await ctrl.drain()

    assert ctrl.tasks is before
    assert api.ops() == ["create"]


@pytest.mark.asyncio
async def test_client_ids_are_unique_even_when_clock_repeats() -> None:
    emitter = NotificationEmitter(timeout_seconds=0)
    ctrl = SyncController(FakeTodoApi(), emitter, clock=lambda: 42)

    ids = [ctrl.add(f"t{i}").id for i in range(3)]  # type: ignore[union-attr]

    assert ids == [42, 43, 44]
    await ctrl.drain()


@pytest.mark.asyncio
async def test_responses_arrive_out_of_order_without_touching_local_state() -> None:
    api = FakeTodoApi()
    ctrl, emitter = _controller(api)
    recorder = NotificationRecorder()
    emitter.subscribe(recorder)
    rec = ctrl.add("a")
    assert rec
    await ctrl.drain()

    gate = asyncio.Event()
    api.gates["update_done"] = gate
    api.fail["update_done"] = RemoteOperationError("update", "Request failed with status code 400")

    ctrl.toggle(rec.id)
    ctrl.delete(rec.id)
    assert ctrl.tasks == ()

    # Let the delete finish while the toggle is still held.
    for _ in range(5):
        await asyncio.sleep(0)
    assert ctrl.pending_count == 1
    assert recorder.shown()[-1].text == "Todo deleted"

    gate.set()
    await ctrl.drain()

    assert ctrl.tasks == ()
    assert recorder.shown()[-1].level == NotificationLevel.ERROR


@pytest.mark.asyncio
async def test_listeners_see_every_replacement() -> None:
    ctrl, _ = _controller(FakeTodoApi())
    seen: list[int] = []
    ctrl.subscribe(lambda: seen.append(len(ctrl.tasks)))

    rec = ctrl.add("a")
    assert rec
    ctrl.add("b")
    ctrl.delete(rec.id)

    assert seen == [1, 2, 1]
    await ctrl.drain()


@pytest.mark.asyncio
async def test_drain_timeout_returns_with_work_still_pending() -> None:
    api = FakeTodoApi()
    api.gates["create"] = asyncio.Event()
    ctrl, _ = _controller(api)

    ctrl.add("slow")
    await ctrl.drain(timeout=0.01)

    assert ctrl.pending_count == 1
    api.gates["create"].set()
    await ctrl.drain()
    assert ctrl.pending_count == 0


def test_mutations_require_running_loop() -> None:
    ctrl, _ = _controller(FakeTodoApi())

    with pytest.raises(RuntimeError):
        ctrl.add("no loop")
    assert ctrl.tasks == ()
