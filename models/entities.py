"""
models/entities.py
------------------
Declarations of every store-resident entity: its table and the columns
read back for it. The application-facing shape of each entity is the
`select` list derived here, and it is the stable contract for callers.
"""

from dataclasses import dataclass

from models.projection import field_for


@dataclass(frozen=True)
class Entity:
    """
    One entity type and its read projection.

    Attributes:
        name: Human-readable entity name used in log lines.
        table: Store table name.
        columns: Store columns requested on every read, in order.
    """
    name: str
    table: str
    columns: tuple[str, ...]

    @property
    def select(self) -> tuple[tuple[str, str], ...]:
        """``(outputName, sourceColumn)`` pairs requested from the store."""
        return tuple((field_for(column), column) for column in self.columns)

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(output for output, _ in self.select)

    @property
    def tracks_updates(self) -> bool:
        """True when the entity carries an ``updatedAt`` modification timestamp."""
        return "updated_at" in self.columns

    def subset(self, *fields: str) -> tuple[tuple[str, str], ...]:
        """
        Partial read projection limited to the given application fields.

        Raises:
            KeyError: If a field is not declared for this entity.
        """
        pairs = dict(self.select)
        return tuple((field, pairs[field]) for field in fields)


USER = Entity("user", "users", (
    "id", "email", "password", "created_at",
))

PROFILE = Entity("profile", "profiles", (
    "id", "user_id", "full_name", "phone", "roll_number", "department",
    "student_class", "created_at", "updated_at",
))

ROLE = Entity("role", "user_roles", (
    "id", "user_id", "role", "created_at",
))

MESSAGE = Entity("contact message", "contact_messages", (
    "id", "name", "email", "subject", "message", "is_seen", "created_at",
))

BOOK_BORROW = Entity("book borrow", "book_borrows", (
    "id", "user_id", "book_id", "book_title", "borrower_name", "borrower_phone",
    "borrower_email", "borrow_date", "due_date", "return_date", "status", "created_at",
))

LIBRARY_CARD = Entity("library card application", "library_card_applications", (
    "id", "user_id", "first_name", "last_name", "father_name", "dob", "class",
    "field", "roll_no", "email", "phone", "address_street", "address_city",
    "address_state", "address_zip", "status", "card_number", "student_id",
    "issue_date", "valid_through", "password", "created_at", "updated_at",
))

DONATION = Entity("donation", "donations", (
    "id", "amount", "method", "name", "email", "message", "created_at",
))

STUDENT = Entity("student", "students", (
    "id", "user_id", "card_id", "name", "class", "field", "roll_no", "created_at",
))

NON_STUDENT = Entity("non-student", "non_students", (
    "id", "user_id", "name", "role", "phone", "created_at",
))

BOOK = Entity("book", "books", (
    "id", "book_name", "short_intro", "description", "book_image",
    "total_copies", "available_copies", "created_at", "updated_at",
))

NOTE = Entity("note", "notes", (
    "id", "title", "description", "subject", "class", "pdf_path", "status",
    "created_at", "updated_at",
))

RARE_BOOK = Entity("rare book", "rare_books", (
    "id", "title", "description", "category", "pdf_path", "cover_image",
    "status", "created_at",
))

EVENT = Entity("event", "events", (
    "id", "title", "description", "images", "date", "created_at", "updated_at",
))

NOTIFICATION = Entity("notification", "notifications", (
    "id", "title", "message", "image", "pin", "status", "created_at",
))

BLOG_POST = Entity("blog post", "blog_posts", (
    "id", "title", "slug", "short_description", "content", "featured_image",
    "is_pinned", "status", "created_at", "updated_at",
))

ALL_ENTITIES: tuple[Entity, ...] = (
    USER, PROFILE, ROLE, MESSAGE, BOOK_BORROW, LIBRARY_CARD, DONATION,
    STUDENT, NON_STUDENT, BOOK, NOTE, RARE_BOOK, EVENT, NOTIFICATION, BLOG_POST,
)
