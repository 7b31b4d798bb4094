"""
services/identifier_service.py
-------------------------------
Synthesis of the human-readable identifiers printed on a library card:
the card number, the student id, and the card validity dates.

Card numbers look like ``{fieldCode}-{rollNo}-{classDigits}`` with an
optional ``-{n}`` suffix when the base is already taken.
"""

import random
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from models.library_card import CARD_VALIDITY_DAYS, STUDENT_ID_PREFIX
from repositories.library_card_repo import LibraryCardRepository
from utils.logger import get_logger

logger = get_logger(__name__)

FIELD_CODES: dict[str, str] = {
    "Computer Science": "CS",
    "Commerce": "COM",
    "Humanities": "HM",
    "Pre-Engineering": "PE",
    "Pre-Medical": "PM",
}
UNKNOWN_FIELD_CODE = "XX"

_NON_DIGITS = re.compile(r"\D")


def field_code(field: Optional[str]) -> str:
    """Short code for an academic field; ``XX`` if unrecognized."""
    return FIELD_CODES.get(field or "", UNKNOWN_FIELD_CODE)


def class_digits(class_label: Optional[str]) -> str:
    """Digits of a class label ("12th" gives "12"); the raw label if it has none."""
    label = class_label or ""
    return _NON_DIGITS.sub("", label) or label


def base_card_number(field: Optional[str], class_label: Optional[str], roll_no) -> str:
    """Unsuffixed card number, e.g. ``CS-45-12``."""
    return f"{field_code(field)}-{roll_no}-{class_digits(class_label)}"


def generate_student_id(rng: Optional[random.Random] = None) -> str:
    """
    Random student id ``GCMN-000000`` .. ``GCMN-999999``.

    No uniqueness check is made; collisions are tolerated.
    """
    number = (rng or random).randint(0, 999_999)
    return f"{STUDENT_ID_PREFIX}-{number:06d}"


def card_validity(today: Optional[date] = None) -> tuple[date, date]:
    """
    Issue and valid-through dates for a new card.

    Returns:
        ``(issue_date, valid_through)`` where valid_through is 365 days
        after issue; both are calendar dates (UTC).
    """
    issue = today or datetime.now(timezone.utc).date()
    return issue, issue + timedelta(days=CARD_VALIDITY_DAYS)


class CardNumberAllocator:
    """
    Finds the first unused card number for a field/class/roll combination.

    The existence check is only a pre-check: two allocators running at
    the same time can return the same number. The unique index on
    ``lower(card_number)`` is the real guard, and callers retry on conflict.
    """

    def __init__(self, repo: Optional[LibraryCardRepository] = None):
        self.repo = repo or LibraryCardRepository()

    def allocate(self, field: Optional[str], class_label: Optional[str], roll_no) -> str:
        """
        Return ``base`` if free, else ``base-1``, ``base-2``, ... (case-insensitive check).
        """
        base = base_card_number(field, class_label, roll_no)
        candidate = base
        counter = 1
        while self.repo.card_number_exists(candidate):
            candidate = f"{base}-{counter}"
            counter += 1
        if candidate != base:
            logger.info(f"Card number {base} taken, allocated {candidate}")
        return candidate
