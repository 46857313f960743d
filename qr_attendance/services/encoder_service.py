"""Turn a validated session into a QR payload and persist its fields."""
import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from qr_attendance.models.session import GeneratedRecord, Session
from qr_attendance.utils.date_utils import format_generation_date, format_generation_time

logger = logging.getLogger(__name__)

PAYLOAD_SEPARATOR = ","

# Persisted keys, in the order their writes are issued
KEY_CURRENT_DATE = "current_date"
KEY_NAME = "name"
KEY_SUBJECT = "materia"
KEY_SURNAME = "surname"
KEY_ID_NUMBER = "idNumber"
KEY_START_TIME = "start_time"
KEY_END_TIME = "end_time"
KEY_GENERATION_TIME = "generation_time"

PERSISTED_KEYS = (
    KEY_CURRENT_DATE,
    KEY_NAME,
    KEY_SUBJECT,
    KEY_SURNAME,
    KEY_ID_NUMBER,
    KEY_START_TIME,
    KEY_END_TIME,
    KEY_GENERATION_TIME,
)


class KeyValueStore(Protocol):
    """Anything with an async ``set(key, value)``."""

    async def set(self, key: str, value: str) -> None:
        ...


@dataclass(frozen=True)
class PersistResult:
    """Outcome of one key write."""

    key: str
    success: bool
    error: Optional[str] = None


def encode(session: Session, now: datetime) -> GeneratedRecord:
    """
    Stamp a session with its generation date and time.

    Args:
        session: Validated session
        now: Current time, supplied by the caller

    Returns:
        GeneratedRecord with date as DD-MM-YYYY and time as HH:MM:SS
    """
    return GeneratedRecord(
        session=session,
        generation_date=format_generation_date(now),
        generation_time=format_generation_time(now),
    )


def payload(record: GeneratedRecord) -> str:
    """
    Serialize a record for the QR code.

    Format: first,last,identity,subject,DD-MM-YYYY,HH:MM:SS,HH:MM:SS

    Values are joined as-is. Commas inside a value are not escaped, which
    would make the payload ambiguous; validated names cannot contain them.
    """
    session = record.session
    return PAYLOAD_SEPARATOR.join([
        session.first_name,
        session.last_name,
        str(session.identity_number),
        session.subject_name,
        record.generation_date,
        session.start_time,
        session.end_time,
    ])


def persistence_entries(record: GeneratedRecord) -> List[Tuple[str, str]]:
    """Return the (key, value) pairs written for a record, all as strings."""
    session = record.session
    return [
        (KEY_CURRENT_DATE, record.generation_date),
        (KEY_NAME, session.first_name),
        (KEY_SUBJECT, session.subject_name),
        (KEY_SURNAME, session.last_name),
        (KEY_ID_NUMBER, str(session.identity_number)),
        (KEY_START_TIME, session.start_time),
        (KEY_END_TIME, session.end_time),
        (KEY_GENERATION_TIME, record.generation_time),
    ]


async def _persist_entry(store: KeyValueStore, key: str, value: str) -> PersistResult:
    """Write one key, logging instead of raising on failure."""
    try:
        await store.set(key, value)
    except Exception as e:
        logger.error(f"Failed to persist {key}: {e}")
        return PersistResult(key=key, success=False, error=str(e))
    return PersistResult(key=key, success=True)


async def persist_record(record: GeneratedRecord, store: KeyValueStore) -> List[PersistResult]:
    """
    Write every field of a record as an independent task.

    Writes run concurrently with no ordering between them. A failed key is
    logged and reported in its own result; other keys are still written and
    nothing is rolled back.

    Returns:
        One PersistResult per key, in PERSISTED_KEYS order
    """
    tasks = [_persist_entry(store, key, value) for key, value in persistence_entries(record)]
    results = await asyncio.gather(*tasks)

    failed = [r.key for r in results if not r.success]
    if failed:
        logger.warning("Stored %d of %d fields; failed: %s", len(results) - len(failed), len(results), ", ".join(failed))
    return list(results)


def schedule_persistence(record: GeneratedRecord, store: KeyValueStore) -> threading.Thread:
    """
    Persist a record in the background without blocking the caller.

    A write still in flight when a newer record is scheduled is not
    cancelled; for each key the write that completes last wins.

    Returns:
        The started daemon thread
    """
    thread = threading.Thread(
        target=lambda: asyncio.run(persist_record(record, store)),
        name=f"persist-{record.generation_time}",
        daemon=True,
    )
    thread.start()
    return thread
