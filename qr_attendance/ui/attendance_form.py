"""Attendance form page: inputs, message box and QR code."""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

import streamlit as st

from qr_attendance.models.form_state import FormState, dismiss_message, edit_field, fail_generation
from qr_attendance.services.form_service import build_payload, load_last_record, submit_form
from qr_attendance.services.qr_service import qr_size_for_viewport, render_qr_png
from qr_attendance.services.storage_service import JsonKeyValueStore
from qr_attendance.utils.config import get_qr_max_size, get_store_file, get_viewport
from qr_attendance.utils.exceptions import EncodingFault

logger = logging.getLogger(__name__)

STATE_KEY = "form_state"

# (field name, label, placeholder), in on-screen order
FORM_FIELDS: List[Tuple[str, str, str]] = [
    ("first_name", "First name", "Ana"),
    ("last_name", "Last name", "Diaz"),
    ("identity_number", "Identity number", "12345"),
    ("subject_name", "Subject", "Math"),
    ("start_time", "Start time", "HH:MM:SS"),
    ("end_time", "End time", "HH:MM:SS"),
]


def _get_store() -> JsonKeyValueStore:
    return JsonKeyValueStore(get_store_file())


def _get_state() -> FormState:
    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = FormState()
    return st.session_state[STATE_KEY]


def _set_state(state: FormState) -> None:
    st.session_state[STATE_KEY] = state


def _on_field_change(name: str) -> None:
    """Copy one widget value into the draft."""
    _set_state(edit_field(_get_state(), name, st.session_state[f"input_{name}"]))


def generated_at_label(state: FormState) -> str:
    """Text shown under the button, e.g. "Generated at: 08:15:02"."""
    generation_time = state.record.generation_time if state.record else ""
    return f"Generated at: {generation_time}"


def last_session_caption(store: JsonKeyValueStore) -> Optional[str]:
    """Describe the previously stored session, or None if there is none."""
    record = load_last_record(store)
    if record is None:
        return None
    session = record.session
    return (
        f"Last QR: {session.first_name} {session.last_name} - {session.subject_name}, "
        f"{record.generation_date} {record.generation_time}"
    )


def _render_message_box(state: FormState) -> None:
    """Show the single pending message, with a close button."""
    if state.message is None:
        return

    st.error(f"❌ {state.message}")
    if st.button("Close", key="close_message"):
        _set_state(dismiss_message(state))
        st.rerun()


def _render_qr(state: FormState) -> None:
    if not state.show_qr:
        return

    try:
        qr_payload = build_payload(state.record)
        width, height = get_viewport()
        size = qr_size_for_viewport(width, height, get_qr_max_size())
        png = render_qr_png(qr_payload, size)
    except (EncodingFault, ValueError):
        logger.exception("Error while rendering the QR code")
        _set_state(fail_generation(state))
        return

    st.image(png, width=size, caption=qr_payload)


def render_attendance_form() -> None:
    """Render the attendance QR generator page."""
    store = _get_store()
    state = _get_state()

    st.title("Attendance QR")

    caption = last_session_caption(store)
    if caption:
        st.caption(caption)

    for name, label, placeholder in FORM_FIELDS:
        st.text_input(
            label,
            key=f"input_{name}",
            placeholder=placeholder,
            on_change=_on_field_change,
            args=(name,),
        )

    if st.button("Generate QR", type="primary", use_container_width=True):
        state = submit_form(_get_state(), datetime.now(), store)
        _set_state(state)

    _render_message_box(state)
    st.markdown(generated_at_label(state))
    _render_qr(state)
