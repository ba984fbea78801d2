"""
ULID generation utility for mapping run identifiers.

Every mapping run is tagged with a ULID so output files and log lines
of the same run can be correlated:
- 26 characters
- Uppercase Crockford base32 (no I, L, O, U)
- Lexicographically sortable by start time

Example:
    01JFH3Q8Z1Q9F0XG3V7N4K2M8C
"""

from datetime import datetime
from typing import Optional

from ulid import ULID

CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def generate_run_id(timestamp: Optional[datetime] = None) -> str:
    """
    Generate a ULID string identifying a mapping run.

    Args:
        timestamp: Optional datetime to use for the ULID's time component.
                   If None, uses current time.

    Returns:
        26-character uppercase ULID string.

    Example:
        >>> run_id = generate_run_id()
        >>> len(run_id)
        26
    """
    if timestamp is not None:
        ulid_obj = ULID.from_datetime(timestamp)
    else:
        ulid_obj = ULID()

    return str(ulid_obj).upper()


def validate_run_id(value: str) -> bool:
    """Whether a string is a well-formed ULID run identifier."""
    if len(value) != 26:
        return False
    return all(char in CROCKFORD_ALPHABET for char in value)


def run_timestamp(run_id: str) -> datetime:
    """
    Start time encoded in a run identifier.

    Raises:
        ValueError: If ``run_id`` is not a valid ULID
    """
    if not validate_run_id(run_id):
        raise ValueError(f"Not a valid run id: {run_id!r}")
    return ULID.from_str(run_id).datetime
