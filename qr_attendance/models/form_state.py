"""Form state and the pure reducers that update it."""
from dataclasses import dataclass, field, replace
from typing import Optional

from qr_attendance.models.outcome import Invalid, ValidationOutcome
from qr_attendance.models.session import GeneratedRecord, RawSessionInput


@dataclass(frozen=True)
class FormState:
    """Everything the form page renders from."""

    draft: RawSessionInput = field(default_factory=RawSessionInput)
    outcome: Optional[ValidationOutcome] = None
    record: Optional[GeneratedRecord] = None
    message: Optional[str] = None

    @property
    def show_qr(self) -> bool:
        """QR code is visible only while a generated record exists."""
        return self.record is not None


def edit_field(state: FormState, name: str, value: str) -> FormState:
    """
    Update one draft field.

    Args:
        state: Current form state
        name: RawSessionInput field name
        value: New raw value

    Returns:
        New FormState with the draft updated

    Raises:
        ValueError: If name is not a form field
    """
    if name not in RawSessionInput.field_names():
        raise ValueError(f"Unknown form field: {name}")
    return replace(state, draft=replace(state.draft, **{name: value}))


def apply_outcome(
    state: FormState,
    outcome: ValidationOutcome,
    record: Optional[GeneratedRecord] = None,
) -> FormState:
    """
    Store a validation outcome.

    An Invalid outcome replaces the visible message and keeps the previous
    record; a Valid outcome must come with the record generated for it.
    """
    if isinstance(outcome, Invalid):
        return replace(state, outcome=outcome, message=outcome.reason)

    if record is None:
        raise ValueError("A valid outcome requires a generated record")
    return replace(state, outcome=outcome, record=record)


def fail_generation(state: FormState) -> FormState:
    """Hide the QR code after an unexpected encoding failure."""
    return replace(state, record=None)


def dismiss_message(state: FormState) -> FormState:
    """Close the message box."""
    return replace(state, message=None)
