"""Rule-based CNIC field extraction using regex patterns.

Each field has its own independent pattern, so a layout that confuses
one extractor leaves the others unaffected. Missing fields stay ``None``.
"""

import re
from collections.abc import Callable
from dataclasses import asdict, dataclass

from cnic_ocr.utils.logger import get_logger

from .normalizers import clean_name, format_date, normalize_identity_number

logger = get_logger(__name__)


@dataclass
class DocumentRecord:
    """Structured fields read from a CNIC. All optional until validated."""

    identity_number: str | None = None
    name: str | None = None
    father_name: str | None = None
    date_of_birth: str | None = None
    date_of_expiry: str | None = None
    gender: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)

    def missing_fields(self) -> list[str]:
        """Names of the fields that were not extracted."""
        return [name for name, value in asdict(self).items() if not value]


_DATE = r"(\d{1,2}[-.]\d{1,2}[-.]\d{4})"
_LABEL_END = r"\s*[:.]?\s*"

# field name -> (pattern, flags, cleaner); the value is group 1 if present.
# Matching always adds re.ASCII, so \d only matches the digits 0-9.
_FIELD_PATTERNS: dict[str, tuple[str, int, Callable[[str], str]]] = {
    "identity_number": (
        r"\b\d{5}[-\s]?\d{7}[-\s]?\d\b",
        0,
        normalize_identity_number,
    ),
    "name": (
        r"Name" + _LABEL_END + r"([A-Za-z\s]+?)(?=\s*Father|Identity|Date|\d|$)",
        re.IGNORECASE,
        clean_name,
    ),
    "father_name": (
        r"Father(?:'s)?(?:\s*Name)?"
        + _LABEL_END
        + r"([A-Za-z\s]+?)(?=\s*Identity|Date|\d|$)",
        re.IGNORECASE,
        clean_name,
    ),
    "date_of_birth": (
        r"Date\s*of\s*Birth" + _LABEL_END + _DATE,
        re.IGNORECASE,
        format_date,
    ),
    "date_of_expiry": (
        r"(?:Date\s*of\s*Expiry|Expiry\s*Date)" + _LABEL_END + _DATE,
        re.IGNORECASE,
        format_date,
    ),
}

# "Name" inside "Father's Name" is not the holder's name label
_FATHER_PREFIX = re.compile(r"Father(?:'s)?\s*$", re.IGNORECASE)


class RuleExtractor:
    """Regex-based extractor for CNIC fields.

    Patterns tolerate the usual OCR noise: optional ``:`` or ``.`` after
    labels, labels run together with values, and hyphens, spaces or
    nothing between identity-number groups.
    """

    def __init__(self) -> None:
        self.patterns = _FIELD_PATTERNS

    def extract(self, text: str) -> DocumentRecord:
        """Extract CNIC fields from recognized text.

        Args:
            text: Text returned by the recognition service.

        Returns:
            A record with every field that could be found.
        """
        values = {
            field_name: self.extract_field(field_name, text)
            for field_name in self.patterns
        }
        record = DocumentRecord(**values, gender=self.infer_gender(text))

        found = [name for name, value in values.items() if value]
        logger.info(
            "Rule extraction found %d/%d fields: %s",
            len(found),
            len(self.patterns),
            ", ".join(found) or "none",
        )
        return record

    def extract_field(self, field_name: str, text: str) -> str | None:
        """Run a single named extractor.

        Returns:
            The cleaned value, or ``None`` if the pattern did not match
            or cleaned down to nothing.
        """
        pattern, flags, cleaner = self.patterns[field_name]
        for match in re.finditer(pattern, text, flags | re.ASCII):
            if field_name == "name" and _FATHER_PREFIX.search(text[: match.start()]):
                continue
            raw = match.group(1) if match.groups() else match.group(0)
            value = cleaner(raw)
            logger.debug("Matched %s: %r -> %r", field_name, raw, value)
            return value or None
        return None

    @staticmethod
    def infer_gender(text: str) -> str:
        """Return ``"Female"`` if the word appears anywhere, else ``"Male"``."""
        return "Female" if "female" in text.lower() else "Male"
