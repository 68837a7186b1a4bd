"""Daily consultation slot catalog."""

from datetime import date, datetime, time, timedelta

from ezhealth.core.exceptions import ValidationException

SLOT_LENGTH = timedelta(minutes=30)

# (first slot start, last slot end); 12:30-14:00 is the lunch break
SESSIONS: tuple[tuple[time, time], ...] = (
    (time(9, 0), time(12, 30)),
    (time(14, 0), time(19, 0)),
)

SLOT_LABEL_FORMAT = "%I:%M %p"


def format_slot(start: time) -> str:
    """Render a slot start time as its label, e.g. ``"09:30 AM"``."""
    return start.strftime(SLOT_LABEL_FORMAT)


def _build_catalog() -> tuple[str, ...]:
    labels: list[str] = []
    anchor = date(2000, 1, 1)
    for start, end in SESSIONS:
        current = datetime.combine(anchor, start)
        session_end = datetime.combine(anchor, end)
        while current + SLOT_LENGTH <= session_end:
            labels.append(format_slot(current.time()))
            current += SLOT_LENGTH
    return tuple(labels)


SLOT_CATALOG: tuple[str, ...] = _build_catalog()


def normalize_slot_label(label: str) -> str:
    """
    Canonical form of a client-supplied slot label.

    ``" 9:00 am"`` becomes ``"09:00 AM"``. Text that is not a 12-hour time
    only has its spacing and case normalized and is left for
    :func:`is_valid_slot` to reject.
    """
    text = " ".join(label.split()).upper()
    try:
        return datetime.strptime(text, SLOT_LABEL_FORMAT).strftime(SLOT_LABEL_FORMAT)
    except ValueError:
        return text


def is_valid_slot(label: str) -> bool:
    """Check whether a label belongs to the catalog."""
    return label in SLOT_CATALOG


def parse_appointment_date(value: str | date) -> date:
    """
    Parse a calendar date.

    Accepts ``YYYY-MM-DD`` or a full ISO timestamp, whose time part is dropped.

    Raises:
        ValidationException: If the value is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = (value or "").strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationException(f"Invalid date: {value!r}. Use YYYY-MM-DD") from None


def remaining_slots(taken: set[str]) -> list[str]:
    """Catalog labels not in ``taken``, in catalog order."""
    return [label for label in SLOT_CATALOG if label not in taken]
