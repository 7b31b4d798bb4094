"""
models/library_card.py
----------------------
Constants for the library-card application lifecycle.
"""

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

STATUSES: tuple[str, ...] = (PENDING, APPROVED, REJECTED)

# Unique indexes created in db/init_db.py; the store reports these
# names when a write collides.
CARD_NUMBER_CONSTRAINT = "uq_library_cards_card_number"
EMAIL_CONSTRAINT = "uq_library_cards_email"
STUDENT_CARD_CONSTRAINT = "uq_students_card_id"

# Institution tag prefixed to every generated student id
STUDENT_ID_PREFIX = "GCMN"

CARD_VALIDITY_DAYS = 365
