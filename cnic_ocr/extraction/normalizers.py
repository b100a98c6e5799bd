"""Value normalizers for CNIC fields.

Covers cleanup of extracted values and the conversion of a record into
the form the backend upload endpoint accepts.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from cnic_ocr.utils.exceptions import PayloadError

if TYPE_CHECKING:
    from .rule_extractor import DocumentRecord

IDENTITY_NUMBER_FORMAT = re.compile(r"^\d{5}-\d{7}-\d$", re.ASCII)

_WHITESPACE = re.compile(r"\s+")
_NON_LETTERS = re.compile(r"[^A-Za-z\s]")
_DATE_PARTS = re.compile(r"^(\d{1,2})[-.](\d{1,2})[-.](\d{4})$", re.ASCII)


def normalize_identity_number(value: str) -> str:
    """Replace whitespace inside an identity number with hyphens.

    ``"42201 8345146 7"`` becomes ``"42201-8345146-7"``; an already
    hyphenated number is returned unchanged.
    """
    return re.sub(r"\s", "-", value.strip())


def strip_whitespace_identity(value: str) -> str:
    """Remove all whitespace from an identity number."""
    return _WHITESPACE.sub("", value)


def clean_name(value: str) -> str:
    """Trim, collapse whitespace, and drop everything but letters and spaces."""
    collapsed = _WHITESPACE.sub(" ", value.strip())
    return _NON_LETTERS.sub("", collapsed).strip()


def format_date(value: str) -> str:
    """Convert a ``D-M-YYYY`` or ``D.M.YYYY`` token to ``DD.MM.YYYY``."""
    match = _DATE_PARTS.match(value.strip())
    if not match:
        return value.replace("-", ".")
    day, month, year = match.groups()
    return f"{int(day):02d}.{int(month):02d}.{year}"


def to_backend_date(value: str) -> str:
    """Convert ``DD.MM.YYYY`` to ``YYYY-MM-DD``.

    Raises:
        PayloadError: If the value is not a dotted day.month.year date.
    """
    parts = value.strip().split(".")
    if len(parts) != 3 or not all(p.isascii() and p.isdigit() for p in parts):
        raise PayloadError(f"Invalid date: {value!r}")
    day, month, year = parts
    return f"{year}-{month}-{day}"


def from_backend_date(value: str) -> str:
    """Convert ``YYYY-MM-DD`` back to ``DD.MM.YYYY``."""
    parts = value.strip().split("-")
    if len(parts) != 3 or not all(p.isascii() and p.isdigit() for p in parts):
        raise PayloadError(f"Invalid date: {value!r}")
    year, month, day = parts
    return f"{day}.{month}.{year}"


def build_upload_payload(record: DocumentRecord) -> dict[str, str]:
    """Convert a validated record into the backend's upload form.

    Identity number whitespace is stripped and both dates are converted
    to ``YYYY-MM-DD``. Unlike record validation, gender is required here.

    Args:
        record: The extracted record.

    Returns:
        Payload keyed by the backend's field names.

    Raises:
        PayloadError: If a field is missing or the identity number is malformed.
    """
    fields = {
        "identityNumber": record.identity_number,
        "name": record.name,
        "fatherName": record.father_name,
        "dateOfBirth": record.date_of_birth,
        "dateOfExpiry": record.date_of_expiry,
        "gender": record.gender,
    }
    if not all(value and value.strip() for value in fields.values()):
        raise PayloadError("Missing required CNIC details")

    payload = {
        "identityNumber": strip_whitespace_identity(record.identity_number),
        "name": record.name.strip(),
        "fatherName": record.father_name.strip(),
        "dateOfBirth": to_backend_date(record.date_of_birth),
        "dateOfExpiry": to_backend_date(record.date_of_expiry),
        "gender": record.gender.strip(),
    }
    if not IDENTITY_NUMBER_FORMAT.match(payload["identityNumber"]):
        raise PayloadError("Invalid CNIC number format")
    return payload
