"""Attendance session data models."""
from dataclasses import dataclass, fields
from typing import List


@dataclass
class RawSessionInput:
    """Form values exactly as typed by the user."""

    first_name: str = ""
    last_name: str = ""
    subject_name: str = ""
    identity_number: str = ""
    start_time: str = ""
    end_time: str = ""

    @classmethod
    def field_names(cls) -> List[str]:
        """Return form field names in declaration order."""
        return [f.name for f in fields(cls)]


@dataclass(frozen=True)
class Session:
    """Attendance of one person to one subject within a time window."""

    first_name: str
    last_name: str
    subject_name: str
    identity_number: int
    start_time: str  # HH:MM:SS
    end_time: str  # HH:MM:SS

    def __post_init__(self):
        """Validate session data after initialization."""
        from qr_attendance.utils.date_utils import is_before
        from qr_attendance.utils.validation import validate_text, validate_time_format

        for label, value in (
            ("First name", self.first_name),
            ("Last name", self.last_name),
            ("Subject", self.subject_name),
        ):
            if not value or not value.strip():
                raise ValueError(f"{label} cannot be empty")
            if not validate_text(value):
                raise ValueError(f"{label} must contain only letters and spaces: {value!r}")

        if isinstance(self.identity_number, bool) or not isinstance(self.identity_number, int):
            raise ValueError(f"Identity number must be an integer, got: {self.identity_number!r}")

        if self.identity_number < 0:
            raise ValueError("Identity number cannot be negative")

        for value in (self.start_time, self.end_time):
            if not validate_time_format(value)[0]:
                raise ValueError(f"Time must be in HH:MM:SS format: {value}")

        if is_before(self.end_time, self.start_time):
            raise ValueError(f"End time ({self.end_time}) cannot be before start time ({self.start_time})")


@dataclass(frozen=True)
class GeneratedRecord:
    """A validated session stamped with the moment its QR code was generated."""

    session: Session
    generation_date: str  # DD-MM-YYYY
    generation_time: str  # HH:MM:SS
