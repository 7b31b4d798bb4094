"""
models/projection.py
--------------------
Bidirectional field-name projection between application records
(camelCase keys) and store rows (snake_case columns).

The mapping is an explicit lookup table rather than a case-conversion
algorithm, so irregular names stay exact. Keys missing from the table
pass through unchanged in both directions.
"""

from typing import Iterable

# (application field, store column); each pair appears once.
FIELD_COLUMNS: tuple[tuple[str, str], ...] = (
    ("userId", "user_id"),
    ("fullName", "full_name"),
    ("rollNumber", "roll_number"),
    ("studentClass", "student_class"),
    ("createdAt", "created_at"),
    ("updatedAt", "updated_at"),
    ("isSeen", "is_seen"),
    ("bookId", "book_id"),
    ("bookTitle", "book_title"),
    ("borrowerName", "borrower_name"),
    ("borrowerPhone", "borrower_phone"),
    ("borrowerEmail", "borrower_email"),
    ("borrowDate", "borrow_date"),
    ("dueDate", "due_date"),
    ("returnDate", "return_date"),
    ("firstName", "first_name"),
    ("lastName", "last_name"),
    ("fatherName", "father_name"),
    ("rollNo", "roll_no"),
    ("addressStreet", "address_street"),
    ("addressCity", "address_city"),
    ("addressState", "address_state"),
    ("addressZip", "address_zip"),
    ("cardNumber", "card_number"),
    ("studentId", "student_id"),
    ("issueDate", "issue_date"),
    ("validThrough", "valid_through"),
    ("cardId", "card_id"),
    ("bookName", "book_name"),
    ("shortIntro", "short_intro"),
    ("bookImage", "book_image"),
    ("totalCopies", "total_copies"),
    ("availableCopies", "available_copies"),
    ("pdfPath", "pdf_path"),
    ("coverImage", "cover_image"),
    ("featuredImage", "featured_image"),
    ("shortDescription", "short_description"),
    ("isPinned", "is_pinned"),
)

_TO_COLUMN: dict[str, str] = dict(FIELD_COLUMNS)
_TO_FIELD: dict[str, str] = {column: field for field, column in FIELD_COLUMNS}

if len(_TO_COLUMN) != len(FIELD_COLUMNS) or len(_TO_FIELD) != len(FIELD_COLUMNS):
    raise RuntimeError("FIELD_COLUMNS contains a duplicated field or column")

PRIMARY_KEY = "id"


def column_for(field: str) -> str:
    """Store column for an application field name."""
    return _TO_COLUMN.get(field, field)


def field_for(column: str) -> str:
    """Application field name for a store column."""
    return _TO_FIELD.get(column, column)


def to_store(record: dict, exclude: Iterable[str] = (PRIMARY_KEY,)) -> dict:
    """
    Project an application record into a store row for writing.

    Args:
        record: Mapping keyed by application field names.
        exclude: Application fields to drop before writing. Defaults to the
            system-assigned primary key.

    Returns:
        A new dict keyed by store column names.
    """
    skip = set(exclude)
    return {column_for(key): value for key, value in record.items() if key not in skip}


def to_app(row: dict) -> dict:
    """Project a store row into an application record."""
    return {field_for(key): value for key, value in row.items()}
