"""
services/library_card_service.py
---------------------------------
Business logic for library-card applications: submission with a unique
card number, and the pending/approved/rejected state machine that
materializes a Student when a card is approved.

Status changes and Student creation are separate round trips. If the
second one fails the application stays approved and the caller gets a
`PartialFailureError` to reconcile (re-approving retries the Student).
"""

import random
from typing import Optional

import config
from exceptions import (
    DuplicateEmailError,
    PartialFailureError,
    ValidationError,
    WriteError,
)
from models.library_card import (
    APPROVED,
    CARD_NUMBER_CONSTRAINT,
    EMAIL_CONSTRAINT,
    PENDING,
    REJECTED,
    STATUSES,
    STUDENT_CARD_CONSTRAINT,
)
from repositories.library_card_repo import LibraryCardRepository
from repositories.student_repo import StudentRepository
from services.identifier_service import (
    CardNumberAllocator,
    card_validity,
    generate_student_id,
)
from utils.audit import audit_event
from utils.logger import get_logger

logger = get_logger(__name__)

# Set by the service on creation; never taken from the applicant.
_SERVER_FIELDS = ("id", "status", "cardNumber", "studentId", "issueDate",
                  "validThrough", "createdAt", "updatedAt")


class LibraryCardService:
    """
    Handles library-card applications and their approval.

    Workflow:
        1. `apply()` checks the email, allocates identifiers, stores a
           pending application.
        2. An administrator calls `set_status()` (or `approve()` / `reject()`).
        3. On approval a Student row is ensured for the card number.
    """

    def __init__(self, store=None, rng: Optional[random.Random] = None,
                 max_attempts: Optional[int] = None):
        self.repo = LibraryCardRepository(store)
        self.students = StudentRepository(self.repo.store)
        self.allocator = CardNumberAllocator(self.repo)
        self.rng = rng
        self.max_attempts = max_attempts or config.CARD_NUMBER_MAX_ATTEMPTS

    # ── SUBMISSION ────────────────────────────────────────

    def apply(self, application: dict) -> dict:
        """
        Store a new pending application with a freshly allocated card number.

        Args:
            application: Applicant fields (``firstName``, ``lastName``,
                ``email``, ``field``, ``class``, ``rollNo`` ...).

        Returns:
            The stored application record.

        Raises:
            DuplicateEmailError: An application already uses this email.
            ValidationError: No free card number after the configured attempts.
            WriteError: The store rejected the insert for another reason.
        """
        email = application.get("email")
        if self.repo.get_by_email(email) is not None:
            raise DuplicateEmailError(email)

        record = {k: v for k, v in application.items() if k not in _SERVER_FIELDS}
        issue_date, valid_through = card_validity()
        record.update(
            status=PENDING,
            studentId=generate_student_id(self.rng),
            issueDate=issue_date,
            validThrough=valid_through,
        )

        for attempt in range(1, self.max_attempts + 1):
            record["cardNumber"] = self.allocator.allocate(
                application.get("field"), application.get("class"), application.get("rollNo")
            )
            try:
                created = self.repo.create(record)
            except WriteError as e:
                if e.constraint == EMAIL_CONSTRAINT:
                    raise DuplicateEmailError(email) from e
                if e.conflict and e.constraint == CARD_NUMBER_CONSTRAINT:
                    logger.warning(
                        f"Card number {record['cardNumber']} taken concurrently "
                        f"(attempt {attempt}/{self.max_attempts}), retrying"
                    )
                    continue
                raise
            logger.info(f"Library card application #{created['id']} submitted, card {created['cardNumber']}")
            return created

        raise ValidationError(
            f"Could not allocate a unique card number after {self.max_attempts} attempts"
        )

    def submit(self, application: dict) -> dict:
        """
        End-user submission: never raises for rule violations.

        Returns:
            Dict with 'success' and either 'application' or 'message'.
        """
        try:
            created = self.apply(application)
        except ValidationError as e:
            logger.info(f"Library card application rejected for {application.get('email')}: {e}")
            return {"success": False, "message": str(e)}
        return {
            "success": True,
            "application": created,
            "message": f"Application received. Your card number is {created['cardNumber']}.",
        }

    # ── STATUS ────────────────────────────────────────────

    def set_status(self, application_id, status: str) -> Optional[dict]:
        """
        Move an application to a new status.

        Every transition is allowed, including re-entering the current
        status and leaving approved/rejected; each one is audited.

        Returns:
            The updated application, or None if it does not exist.

        Raises:
            ValidationError: Unknown status.
            StoreError: The application could not be read.
            WriteError: The status update was rejected.
            PartialFailureError: Approved, but the Student could not be created.
        """
        new_status = (status or "").strip().lower()
        if new_status not in STATUSES:
            raise ValidationError(f"Unknown status '{status}'. Expected one of: {', '.join(STATUSES)}")

        current = self.repo.fetch(application_id)
        if current is None:
            logger.warning(f"Status change to {new_status} for missing application #{application_id}")
            return None

        updated = self.repo.update(application_id, {"status": new_status})
        if updated is None:
            # deleted between the read and the write
            return None

        audit_event(
            "card.status_changed",
            id=application_id,
            card_number=updated.get("cardNumber"),
            from_status=current.get("status"),
            to_status=new_status,
        )

        if new_status == APPROVED:
            self.ensure_student(updated)
        return updated

    def approve(self, application_id) -> Optional[dict]:
        return self.set_status(application_id, APPROVED)

    def reject(self, application_id) -> Optional[dict]:
        return self.set_status(application_id, REJECTED)

    # ── MATERIALIZATION ───────────────────────────────────

    def ensure_student(self, application: dict) -> dict:
        """
        Return the Student for an approved application, creating it if missing.

        The owning user is the application's linked user, or the
        application's own id when the applicant never registered.

        Raises:
            PartialFailureError: The Student insert failed.
        """
        card_id = application["cardNumber"]
        existing = self.students.get_by_card_id(card_id)
        if existing is not None:
            return existing

        student = {
            "userId": application.get("userId") or application["id"],
            "cardId": card_id,
            "name": f"{application.get('firstName', '')} {application.get('lastName', '')}".strip(),
            "class": application.get("class"),
            "field": application.get("field"),
            "rollNo": application.get("rollNo"),
        }
        try:
            created = self.students.create(student)
        except WriteError as e:
            if e.conflict and e.constraint == STUDENT_CARD_CONSTRAINT:
                # a concurrent approval created it first
                winner = self.students.get_by_card_id(card_id)
                if winner is not None:
                    return winner
            audit_event(
                "student.materialization_failed",
                application_id=application["id"],
                card_id=card_id,
                error=e,
            )
            raise PartialFailureError(application, e) from e

        audit_event(
            "student.materialized",
            application_id=application["id"],
            card_id=card_id,
            student_id=created["id"],
            user_id=created["userId"],
        )
        return created
