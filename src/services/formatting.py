"""
Display formatting for bill dates and statuses.

Both functions raise ValueError on malformed input; callers that render
lists are expected to recover per row.
"""

from datetime import date

# French short month names, as shown in the bill list
FRENCH_SHORT_MONTHS = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]

STATUS_LABELS = {
    "pending": "En attente",
    "accepted": "Accepté",
    "refused": "Refused",
}


def parse_bill_date(raw: str | None) -> date:
    """Parse an ISO bill date ("2023-06-01", optionally with a time part)"""
    if not raw or not isinstance(raw, str):
        raise ValueError(f"Invalid bill date: {raw!r}")
    return date.fromisoformat(raw.strip()[:10])


def format_date(raw: str | None) -> str:
    """
    Format an ISO date for the bill list.

    Example: "2004-04-04" -> "4 Avr. 04"
    """
    d = parse_bill_date(raw)
    month = FRENCH_SHORT_MONTHS[d.month - 1]
    month = month[0].upper() + month[1:]
    return f"{d.day} {month[:3]}. {str(d.year)[-2:]}"


def format_status(raw: str | None) -> str:
    """Translate a stored status code into its label"""
    status = getattr(raw, "value", raw)
    if status not in STATUS_LABELS:
        raise ValueError(f"Unknown bill status: {raw!r}")
    return STATUS_LABELS[status]
