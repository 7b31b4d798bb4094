"""
exceptions.py
-------------
Error taxonomy shared by every layer.

A missing row is never an error: lookups return ``None`` (or an empty
list) instead of raising.
"""

from typing import Optional


class LibraryError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(LibraryError):
    """A mandatory setting is missing or invalid."""


class StoreError(LibraryError):
    """A round trip to the relational store failed."""


class WriteError(StoreError):
    """
    The store rejected an insert, update or delete.

    Attributes:
        constraint: Name of the violated constraint, when the store reports one.
        conflict: True for a unique-constraint violation (safe to retry
            with a different value).
    """

    def __init__(self, message: str, constraint: Optional[str] = None,
                 conflict: bool = False):
        super().__init__(message)
        self.constraint = constraint
        self.conflict = conflict


class ValidationError(LibraryError):
    """A business rule rejected the request."""


class DuplicateEmailError(ValidationError):
    """A library card application already exists for this email."""

    def __init__(self, email: str):
        super().__init__(
            "You have already applied for a library card with this email address."
        )
        self.email = email


class UploadError(LibraryError):
    """The blob store rejected an upload or delete."""


class PartialFailureError(LibraryError):
    """
    An application was approved but its Student row could not be created.

    The status change is NOT rolled back; operators reconcile by
    re-approving once the cause is fixed.
    """

    def __init__(self, application: dict, cause: Exception):
        super().__init__(
            f"Application {application.get('id')} was approved but the student "
            f"record for card {application.get('cardNumber')} could not be created: {cause}"
        )
        self.application = application
        self.cause = cause
