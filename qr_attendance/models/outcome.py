"""Validation outcome types."""
from dataclasses import dataclass
from typing import Union

from qr_attendance.models.session import Session


@dataclass(frozen=True)
class Valid:
    """Every rule passed; carries the normalized session."""

    session: Session

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    """The first rule that failed, as a user-facing message."""

    reason: str

    @property
    def is_valid(self) -> bool:
        return False


ValidationOutcome = Union[Valid, Invalid]
