"""Attendance form validation utilities."""
import re
from typing import Tuple

from qr_attendance.models.outcome import Invalid, Valid, ValidationOutcome
from qr_attendance.models.session import RawSessionInput, Session
from qr_attendance.utils.date_utils import is_before, parse_time

MSG_REQUIRED = "all fields are required"
MSG_NAME = "name must not contain numbers or special characters"
MSG_SURNAME = "surname must not contain numbers or special characters"
MSG_SUBJECT = "subject must not contain numbers or special characters"
MSG_IDENTITY = "identity number must be an integer"
MSG_TIME_FORMAT = "please enter valid times in HH:MM:SS format"
MSG_TIME_ORDER = "end time cannot be before start time"

# Letters and whitespace; unlike re's \s, excludes the \x1c-\x1f separators and \x85
_TEXT_PATTERN = re.compile(
    "[A-Za-z \t\n\v\f\r\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)
_INTEGER_PATTERN = re.compile(r"[0-9]+")
_TIME_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}:[0-9]{2}")


def validate_text(text: str) -> bool:
    """Check that text holds only ASCII letters and whitespace."""
    return isinstance(text, str) and _TEXT_PATTERN.fullmatch(text) is not None


def validate_required_fields(raw: RawSessionInput) -> Tuple[bool, str]:
    """
    Validate that every form field has a value.

    Args:
        raw: Raw form values

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if all six fields are filled
        - (False, MSG_REQUIRED) if any is empty or whitespace-only
    """
    for name in RawSessionInput.field_names():
        value = getattr(raw, name)
        if not value or not str(value).strip():
            return False, MSG_REQUIRED
    return True, ""


def validate_names(raw: RawSessionInput) -> Tuple[bool, str]:
    """
    Validate first name, last name and subject, in that order.

    Returns:
        Tuple of (is_valid: bool, error_message: str) naming the first
        offending field
    """
    checks = (
        (raw.first_name, MSG_NAME),
        (raw.last_name, MSG_SURNAME),
        (raw.subject_name, MSG_SUBJECT),
    )
    for value, message in checks:
        if not validate_text(value):
            return False, message
    return True, ""


def parse_identity_number(value: str) -> int:
    """
    Parse an identity number.

    Raises:
        ValueError: If value is not a non-negative integer literal
    """
    if not isinstance(value, str) or not _INTEGER_PATTERN.fullmatch(value.strip()):
        raise ValueError(f"Invalid identity number: {value!r}")
    return int(value.strip())


def validate_identity_number(value: str) -> Tuple[bool, str]:
    """
    Validate identity number.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") for digits-only input such as "12345"
        - (False, MSG_IDENTITY) for "12a45", "12.5", "-3"
    """
    try:
        parse_identity_number(value)
    except ValueError:
        return False, MSG_IDENTITY
    return True, ""


def validate_time_format(time_str: str) -> Tuple[bool, str]:
    """
    Validate a strict 24-hour HH:MM:SS time.

    Both the zero-padded shape and the component ranges are checked, so
    "8:00:00" and "08:61:00" are rejected.
    """
    if not isinstance(time_str, str) or not _TIME_PATTERN.fullmatch(time_str):
        return False, MSG_TIME_FORMAT

    try:
        parse_time(time_str)
    except ValueError:
        return False, MSG_TIME_FORMAT

    return True, ""


def validate_time_order(start_time: str, end_time: str) -> Tuple[bool, str]:
    """
    Validate that end time is not before start time.

    Equal times are accepted. Inputs must already be valid HH:MM:SS.
    """
    if is_before(end_time, start_time):
        return False, MSG_TIME_ORDER
    return True, ""


def validate(raw: RawSessionInput) -> ValidationOutcome:
    """
    Run every rule against the raw form values.

    Rules run in a fixed order and the first failure wins: presence, name
    characters, identity number, time format, time order.

    Args:
        raw: Raw form values

    Returns:
        Valid(Session) with identity number coerced to int, or
        Invalid(reason) with a user-facing message
    """
    is_valid, error_msg = validate_required_fields(raw)
    if not is_valid:
        return Invalid(error_msg)

    is_valid, error_msg = validate_names(raw)
    if not is_valid:
        return Invalid(error_msg)

    is_valid, error_msg = validate_identity_number(raw.identity_number)
    if not is_valid:
        return Invalid(error_msg)

    for time_str in (raw.start_time, raw.end_time):
        is_valid, error_msg = validate_time_format(time_str)
        if not is_valid:
            return Invalid(error_msg)

    is_valid, error_msg = validate_time_order(raw.start_time, raw.end_time)
    if not is_valid:
        return Invalid(error_msg)

    return Valid(
        Session(
            first_name=raw.first_name,
            last_name=raw.last_name,
            subject_name=raw.subject_name,
            identity_number=parse_identity_number(raw.identity_number),
            start_time=raw.start_time,
            end_time=raw.end_time,
        )
    )
