"""Attendance form submission: validate, encode, persist."""
import logging
from datetime import datetime
from typing import Callable, Optional

from qr_attendance.models.form_state import FormState, apply_outcome, fail_generation
from qr_attendance.models.outcome import Invalid
from qr_attendance.models.session import GeneratedRecord, Session
from qr_attendance.services.encoder_service import (
    KEY_CURRENT_DATE,
    KEY_END_TIME,
    KEY_GENERATION_TIME,
    KEY_ID_NUMBER,
    KEY_NAME,
    KEY_START_TIME,
    KEY_SUBJECT,
    KEY_SURNAME,
    KeyValueStore,
    encode,
    payload,
    schedule_persistence,
)
from qr_attendance.services.storage_service import JsonKeyValueStore
from qr_attendance.utils.exceptions import EncodingFault
from qr_attendance.utils.validation import validate

logger = logging.getLogger(__name__)


def submit_form(
    state: FormState,
    now: datetime,
    store: KeyValueStore,
    persist: Callable[[GeneratedRecord, KeyValueStore], object] = schedule_persistence,
) -> FormState:
    """
    Handle the "Generate QR" action.

    Args:
        state: Current form state
        now: Current time used to stamp the record
        store: Key-value store receiving the record fields
        persist: Persistence launcher (background by default)

    Returns:
        New FormState:
        - Invalid input: the reason becomes the visible message
        - Valid input: the new record is stored and the QR code shown
        - Unexpected failure while encoding: QR hidden, no message

    Behavior:
        - Validation failures are user errors and are not logged
        - Persistence runs in the background; its failures are only logged
    """
    outcome = validate(state.draft)
    if isinstance(outcome, Invalid):
        return apply_outcome(state, outcome)

    try:
        record = generate_record(outcome.session, now)
    except EncodingFault:
        logger.exception("Error while computing the QR payload")
        return fail_generation(state)

    try:
        persist(record, store)
    except Exception as e:
        logger.error(f"Failed to start persistence: {e}")

    return apply_outcome(state, outcome, record)


def generate_record(session: Session, now: datetime) -> GeneratedRecord:
    """
    Stamp a session and check that its payload can be built.

    Raises:
        EncodingFault: On any unexpected failure
    """
    try:
        record = encode(session, now)
        payload(record)
    except Exception as e:
        raise EncodingFault(f"Cannot build payload: {e}") from e
    return record


def build_payload(record: GeneratedRecord) -> str:
    """
    Serialize a record for display.

    Raises:
        EncodingFault: If the payload cannot be built
    """
    try:
        return payload(record)
    except Exception as e:
        raise EncodingFault(f"Cannot build payload: {e}") from e


def load_last_record(store: JsonKeyValueStore) -> Optional[GeneratedRecord]:
    """
    Rebuild the last generated record from stored fields.

    Returns:
        GeneratedRecord, or None when a field is missing or the stored
        values no longer form a valid session
    """
    data = store.get_all()
    try:
        session = Session(
            first_name=data[KEY_NAME],
            last_name=data[KEY_SURNAME],
            subject_name=data[KEY_SUBJECT],
            identity_number=int(data[KEY_ID_NUMBER]),
            start_time=data[KEY_START_TIME],
            end_time=data[KEY_END_TIME],
        )
        return GeneratedRecord(
            session=session,
            generation_date=data[KEY_CURRENT_DATE],
            generation_time=data[KEY_GENERATION_TIME],
        )
    except (KeyError, TypeError, ValueError) as e:
        if data:
            logger.warning(f"Stored session is incomplete or invalid: {e}")
        return None
