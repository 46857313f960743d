"""Unit tests for the session encoder."""
import asyncio
import logging
import threading
from datetime import datetime

import pytest

from qr_attendance.models.session import Session
from qr_attendance.services.encoder_service import (
    PERSISTED_KEYS,
    encode,
    payload,
    persist_record,
    persistence_entries,
    schedule_persistence
)
from qr_attendance.utils.exceptions import PersistenceError


class MemoryStore:
    """Store double that records writes and can fail chosen keys."""

    def __init__(self, failing_keys=()):
        self.data = {}
        self.failing_keys = set(failing_keys)
        self.written = threading.Event()

    async def set(self, key, value):
        if key in self.failing_keys:
            raise PersistenceError(f"disk full while writing {key}")
        self.data[key] = value
        if len(self.data) == len(PERSISTED_KEYS) - len(self.failing_keys):
            self.written.set()


@pytest.fixture
def session():
    return Session("Ana", "Diaz", "Math", 12345, "08:00:00", "09:30:00")


@pytest.fixture
def now():
    return datetime(2024, 1, 15, 10, 20, 30)


class TestEncode:
    """Test encode function."""

    def test_stamps_date_and_time(self, session, now):
        record = encode(session, now)
        assert record.session == session
        assert record.generation_date == "15-01-2024"
        assert record.generation_time == "10:20:30"


class TestPayload:
    """Test payload serialization."""

    def test_payload_field_order(self, session, now):
        """Fields are joined in payload order."""
        assert payload(encode(session, now)) == "Ana,Diaz,12345,Math,15-01-2024,08:00:00,09:30:00"

    def test_payload_has_seven_components(self, session, now):
        assert len(payload(encode(session, now)).split(",")) == 7

    def test_payload_is_deterministic(self, session, now):
        assert payload(encode(session, now)) == payload(encode(session, now))

    def test_different_now_changes_only_date(self, session, now):
        first = payload(encode(session, now)).split(",")
        second = payload(encode(session, datetime(2025, 6, 1, 23, 0, 0))).split(",")

        assert first[4] != second[4]
        assert first[:4] == second[:4]
        assert first[5:] == second[5:]

    def test_payload_keeps_inner_spaces(self, now):
        session = Session("Ana Maria", "Diaz", "Linear Algebra", 7, "08:00:00", "08:00:00")
        assert payload(encode(session, now)) == "Ana Maria,Diaz,7,Linear Algebra,15-01-2024,08:00:00,08:00:00"


class TestPersistenceEntries:
    """Test persisted key-value pairs."""

    def test_entries_cover_every_key(self, session, now):
        entries = dict(persistence_entries(encode(session, now)))

        assert list(entries) == list(PERSISTED_KEYS)
        assert entries == {
            "current_date": "15-01-2024",
            "name": "Ana",
            "materia": "Math",
            "surname": "Diaz",
            "idNumber": "12345",
            "start_time": "08:00:00",
            "end_time": "09:30:00",
            "generation_time": "10:20:30",
        }

    def test_all_values_are_strings(self, session, now):
        assert all(isinstance(v, str) for _, v in persistence_entries(encode(session, now)))


class TestPersistRecord:
    """Test best-effort persistence."""

    def test_all_keys_written(self, session, now):
        store = MemoryStore()
        results = asyncio.run(persist_record(encode(session, now), store))

        assert [r.key for r in results] == list(PERSISTED_KEYS)
        assert all(r.success for r in results)
        assert store.data["idNumber"] == "12345"

    def test_one_failure_does_not_block_others(self, session, now, caplog):
        store = MemoryStore(failing_keys={"materia"})

        with caplog.at_level(logging.ERROR):
            results = asyncio.run(persist_record(encode(session, now), store))

        failed = [r for r in results if not r.success]
        assert [r.key for r in failed] == ["materia"]
        assert "disk full" in failed[0].error
        assert "materia" not in store.data
        assert len(store.data) == len(PERSISTED_KEYS) - 1
        assert "Failed to persist materia" in caplog.text

    def test_unexpected_store_error_is_reported(self, session, now):
        class BrokenStore:
            async def set(self, key, value):
                raise RuntimeError("boom")

        results = asyncio.run(persist_record(encode(session, now), BrokenStore()))
        assert not any(r.success for r in results)


class TestSchedulePersistence:
    """Test fire-and-forget persistence."""

    def test_runs_in_background_thread(self, session, now):
        store = MemoryStore()
        thread = schedule_persistence(encode(session, now), store)

        assert thread.daemon is True
        thread.join(timeout=5)
        assert store.written.is_set()
        assert store.data["generation_time"] == "10:20:30"

    def test_later_record_overwrites_keys(self, session, now):
        store = MemoryStore()
        schedule_persistence(encode(session, now), store).join(timeout=5)
        schedule_persistence(encode(session, datetime(2024, 1, 16, 8, 0, 0)), store).join(timeout=5)

        assert store.data["current_date"] == "16-01-2024"
        assert store.data["generation_time"] == "08:00:00"
