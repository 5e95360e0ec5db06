"""Tests for Table save/delete/bulk_import (F3)."""

import pytest


class TestSaveLocal:
    """Local effects of save()."""

    def test_save_without_id_generates_prefixed_id(self, local_engine):
        """Students get ids starting with std_."""
        saved = local_engine.students.save({"name": "Ana", "grade": "3"})

        assert saved["id"].startswith("std_")
        assert local_engine.students.all() == [saved]

    def test_save_does_not_mutate_input(self, local_engine):
        record = {"name": "Ana"}
        local_engine.students.save(record)
        assert "id" not in record

    def test_resave_with_returned_id_updates_in_place(self, local_engine):
        """Same object plus its id updates, never duplicates."""
        record = {"name": "Ana", "grade": "3"}
        saved = local_engine.students.save(record)

        local_engine.students.save({**record, "id": saved["id"], "grade": "4"})

        students = local_engine.students.all()
        assert len(students) == 1
        assert students[0]["grade"] == "4"

    def test_update_preserves_position_and_length(self, local_engine):
        a = local_engine.materials.save({"title": "A"})
        b = local_engine.materials.save({"title": "B"})
        c = local_engine.materials.save({"title": "C"})

        local_engine.materials.save({"id": b["id"], "title": "B2"})

        titles = [m["title"] for m in local_engine.materials.all()]
        assert titles == ["A", "B2", "C"]
        assert [m["id"] for m in local_engine.materials.all()] == [a["id"], b["id"], c["id"]]

    def test_update_replaces_all_fields(self, local_engine):
        saved = local_engine.users.save({"name": "Budi", "role": "teacher"})
        local_engine.users.save({"id": saved["id"], "name": "Budi S."})

        assert local_engine.users.get(saved["id"]) == {"id": saved["id"], "name": "Budi S."}

    def test_unknown_id_is_appended_as_is(self, local_engine):
        """An id from elsewhere is kept, not regenerated."""
        saved = local_engine.submissions.save({"id": "external-42", "status": "pending"})

        assert saved["id"] == "external-42"
        assert local_engine.submissions.all() == [{"id": "external-42", "status": "pending"}]

    @pytest.mark.parametrize("empty_id", [None, ""])
    def test_empty_id_is_generated(self, local_engine, empty_id):
        saved = local_engine.students.save({"id": empty_id, "name": "Citra"})
        assert saved["id"].startswith("std_")

    def test_many_saves_never_collide(self, local_engine):
        for i in range(300):
            local_engine.students.save({"name": f"S{i}"})

        ids = [s["id"] for s in local_engine.students.all()]
        assert len(ids) == 300
        assert len(set(ids)) == 300

    def test_tables_are_independent(self, local_engine):
        local_engine.students.save({"name": "Ana"})
        assert local_engine.users.all() == []

    def test_save_notifies_once(self, local_engine):
        seen = []
        local_engine.notifier.subscribe(local_engine.students.spec.key, seen.append)

        saved = local_engine.students.save({"name": "Ana"})

        assert seen == [[saved]]


class TestDeleteLocal:
    """Local effects of delete()."""

    def test_delete_removes_exactly_one(self, local_engine):
        a = local_engine.students.save({"name": "Ana"})
        b = local_engine.students.save({"name": "Budi"})

        assert local_engine.students.delete(a["id"]) is True
        assert local_engine.students.all() == [b]

    def test_delete_absent_is_noop(self, local_engine):
        a = local_engine.students.save({"name": "Ana"})

        assert local_engine.students.delete("missing") is False
        assert local_engine.students.delete("missing") is False
        assert local_engine.students.all() == [a]

    def test_delete_still_notifies(self, local_engine):
        seen = []
        local_engine.notifier.subscribe(local_engine.users.spec.key, seen.append)

        local_engine.users.delete("missing")

        assert seen == [[]]


class TestBulkImportLocal:
    """Local effects of bulk_import()."""

    def test_import_assigns_distinct_ids(self, local_engine):
        imported = local_engine.students.bulk_import([{"name": "A"}, {"name": "B"}])

        students = local_engine.students.all()
        assert len(students) == 2
        assert students == imported
        assert len({s["id"] for s in students}) == 2
        assert all(s["id"].startswith("std_") for s in students)

    def test_import_triggers_one_notification(self, local_engine):
        calls = []
        local_engine.students.subscribe(calls.append)
        calls.clear()

        local_engine.students.bulk_import([{"name": "A"}, {"name": "B"}])

        assert len(calls) == 1
        assert len(calls[0]) == 2

    def test_import_appends_to_existing(self, local_engine):
        existing = local_engine.students.save({"name": "Old"})
        local_engine.students.bulk_import([{"name": "New"}])

        names = [s["name"] for s in local_engine.students.all()]
        assert names == ["Old", "New"]
        assert local_engine.students.all()[0] == existing

    def test_import_replaces_incoming_ids(self, local_engine):
        imported = local_engine.students.bulk_import([{"id": "dup", "name": "A"}])
        assert imported[0]["id"] != "dup"


class TestRemoteMirroring:
    """Background remote effects of writes."""

    @pytest.mark.asyncio
    async def test_create_then_update_sent(self, synced_engine, fake_sheet):
        saved = synced_engine.students.save({"name": "Ana"})
        await synced_engine.drain()
        synced_engine.students.save({**saved, "grade": "2"})
        await synced_engine.drain()

        assert [w["action"] for w in fake_sheet.writes] == ["create", "update"]
        assert fake_sheet.writes[0] == {"action": "create", "table": "students", "data": saved}
        assert fake_sheet.writes[1]["data"]["grade"] == "2"

    @pytest.mark.asyncio
    async def test_save_returns_before_remote_completes(self, synced_engine, fake_sheet):
        """Local write is visible before any network round trip."""
        saved = synced_engine.students.save({"name": "Ana"})

        assert synced_engine.students.all() == [saved]
        assert fake_sheet.writes == []
        assert synced_engine.tasks.pending == 1

        await synced_engine.drain()
        assert len(fake_sheet.writes) == 1

    @pytest.mark.asyncio
    async def test_delete_sends_only_id(self, synced_engine, fake_sheet):
        saved = synced_engine.materials.save({"title": "Kancil"})
        synced_engine.materials.delete(saved["id"])
        await synced_engine.drain()

        assert fake_sheet.writes[-1] == {
            "action": "delete",
            "table": "materials",
            "data": {"id": saved["id"]},
        }

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_local_write(self, synced_engine, fake_sheet):
        """Remote outage never rolls back or raises."""
        fake_sheet.offline = True
        events = []
        synced_engine.on_sync(events.append)

        saved = synced_engine.students.save({"name": "Ana"})
        synced_engine.students.delete("whatever")
        await synced_engine.drain()

        assert synced_engine.students.all() == [saved]
        assert [e.ok for e in events] == [False, False]

    @pytest.mark.asyncio
    async def test_remote_delete_failure_keeps_local_deletion(self, synced_engine, fake_sheet):
        saved = synced_engine.students.save({"name": "Ana"})
        await synced_engine.drain()

        fake_sheet.write_status = 500
        synced_engine.students.delete(saved["id"])
        await synced_engine.drain()

        assert synced_engine.students.all() == []

    @pytest.mark.asyncio
    async def test_bulk_import_sends_one_create_per_record(self, synced_engine, fake_sheet):
        imported = synced_engine.students.bulk_import(
            [{"name": "A"}, {"name": "B"}, {"name": "C"}]
        )
        await synced_engine.drain()

        assert [w["action"] for w in fake_sheet.writes] == ["create"] * 3
        assert [w["data"] for w in fake_sheet.writes] == imported

    @pytest.mark.asyncio
    async def test_local_mode_sends_nothing(self, local_engine):
        local_engine.students.save({"name": "Ana"})
        assert local_engine.tasks.pending == 0
        await local_engine.drain()

    def test_no_event_loop_keeps_local_write(self, synced_engine, fake_sheet):
        """Outside a running loop the mirror is dropped, the write is not."""
        saved = synced_engine.students.save({"name": "Ana"})

        assert synced_engine.students.all() == [saved]
        assert synced_engine.tasks.pending == 0
        assert fake_sheet.writes == []
