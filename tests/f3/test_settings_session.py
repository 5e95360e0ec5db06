"""Tests for the settings singleton and the session record (F3)."""

import pytest

from senja.core.models import SETTINGS_ID


class TestSettingsLocal:
    """Settings without a remote endpoint."""

    def test_defaults_when_unset(self, local_engine):
        assert local_engine.settings.get() == {"certBackground": ""}

    def test_two_saves_leave_one_record(self, local_engine):
        """Second payload wins and the id is forced."""
        local_engine.settings.save({"certBackground": "a.png", "school": "SD 1"})
        local_engine.settings.save({"certBackground": "b.png", "id": "caller-id"})

        stored = local_engine.settings.get()
        assert stored == {"certBackground": "b.png", "id": SETTINGS_ID}

    def test_stored_as_single_object(self, local_engine):
        local_engine.settings.save({"certBackground": "a.png"})
        assert local_engine.store.get_object("senja_settings")["id"] == SETTINGS_ID

    def test_subscribe_replays_and_follows(self, local_engine):
        calls = []
        local_engine.settings.subscribe(calls.append)

        saved = local_engine.settings.save({"certBackground": "x.png"})

        assert calls == [{"certBackground": ""}, saved]

    def test_failing_replay_leaves_no_registration(self, local_engine):
        calls = []

        def callback(settings):
            calls.append(settings)
            raise RuntimeError("render failed")

        with pytest.raises(RuntimeError):
            local_engine.settings.subscribe(callback)

        assert local_engine.notifier.subscriber_count("senja_settings") == 0
        local_engine.settings.save({"certBackground": "x.png"})
        assert calls == [{"certBackground": ""}]

    def test_defaults_not_shared(self, local_engine):
        local_engine.settings.get()["certBackground"] = "mutated"
        assert local_engine.settings.get() == {"certBackground": ""}


class TestSettingsRemote:
    """Settings mirroring and reconciliation."""

    @pytest.mark.asyncio
    async def test_save_sends_update_with_forced_id(self, synced_engine, fake_sheet):
        synced_engine.settings.save({"certBackground": "a.png", "id": "other"})
        await synced_engine.drain()

        assert fake_sheet.writes == [
            {
                "action": "update",
                "table": "settings",
                "data": {"certBackground": "a.png", "id": SETTINGS_ID},
            }
        ]

    @pytest.mark.asyncio
    async def test_subscribe_picks_global_settings_row(self, synced_engine, fake_sheet):
        fake_sheet.tables["settings"] = [
            {"id": "stale", "certBackground": "old.png"},
            {"id": SETTINGS_ID, "certBackground": "server.png"},
        ]
        calls = []

        synced_engine.settings.subscribe(calls.append)
        await synced_engine.drain()

        assert calls[-1] == {"id": SETTINGS_ID, "certBackground": "server.png"}
        assert synced_engine.settings.get()["certBackground"] == "server.png"

    @pytest.mark.asyncio
    async def test_subscribe_falls_back_to_first_row(self, synced_engine, fake_sheet):
        fake_sheet.tables["settings"] = [{"id": "legacy", "certBackground": "l.png"}]
        calls = []

        synced_engine.settings.subscribe(calls.append)
        await synced_engine.drain()

        assert calls == [{"certBackground": ""}, {"id": "legacy", "certBackground": "l.png"}]

    @pytest.mark.asyncio
    async def test_empty_remote_keeps_local(self, synced_engine, fake_sheet):
        synced_engine.settings.save({"certBackground": "mine.png"})
        await synced_engine.drain()
        calls = []

        synced_engine.settings.subscribe(calls.append)
        await synced_engine.drain()

        assert len(calls) == 1
        assert synced_engine.settings.get()["certBackground"] == "mine.png"


class TestSession:
    """Session get/set/clear."""

    def test_empty_by_default(self, local_engine):
        assert local_engine.session.get() is None

    def test_set_get_clear(self, local_engine):
        local_engine.session.set({"id": "std_1", "name": "Ana", "grade": "3"})
        assert local_engine.session.get() == {"id": "std_1", "name": "Ana", "grade": "3"}

        local_engine.session.clear()
        assert local_engine.session.get() is None

    def test_clear_when_empty(self, local_engine):
        local_engine.session.clear()
        assert local_engine.session.get() is None

    @pytest.mark.asyncio
    async def test_session_never_synced(self, synced_engine, fake_sheet):
        synced_engine.session.set({"id": "admin-1", "role": "admin"})
        synced_engine.session.clear()
        await synced_engine.drain()

        assert fake_sheet.writes == []
        assert fake_sheet.reads == []

    def test_corrupt_session_reads_none(self, local_engine):
        local_engine.store.backend.set("senja_session_current", "{oops")
        assert local_engine.session.get() is None
