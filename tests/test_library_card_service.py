import logging
import random
import re
from datetime import timedelta

import pytest

from exceptions import DuplicateEmailError, PartialFailureError, StoreError, ValidationError, WriteError
from services.library_card_service import LibraryCardService

CARDS = "library_card_applications"
STUDENTS = "students"


@pytest.fixture
def service(store):
    return LibraryCardService(store=store, rng=random.Random(7), max_attempts=3)


# ── submission ────────────────────────────────────────────

def test_apply_creates_pending_application(service, application):
    created = service.apply(application)

    assert created["status"] == "pending"
    assert created["cardNumber"] == "CS-45-12"
    assert re.fullmatch(r"GCMN-\d{6}", created["studentId"])
    assert created["validThrough"] - created["issueDate"] == timedelta(days=365)
    assert created["firstName"] == "Ali"
    assert created["addressCity"] == "Mardan"
    assert created["id"]


def test_apply_ignores_client_supplied_server_fields(service, application):
    application.update(status="approved", cardNumber="HACK-1", id="chosen-id")
    created = service.apply(application)

    assert created["status"] == "pending"
    assert created["cardNumber"] == "CS-45-12"
    assert created["id"] != "chosen-id"


def test_second_applicant_with_same_base_gets_suffix(service, application):
    service.apply(application)
    other = dict(application, email="someone.else@example.com")

    assert service.apply(other)["cardNumber"] == "CS-45-12-1"


def test_duplicate_email_is_rejected(service, application):
    service.apply(application)
    again = dict(application, rollNo="46")

    with pytest.raises(DuplicateEmailError) as err:
        service.apply(again)
    assert "already applied" in str(err.value)


def test_submit_translates_duplicate_email(service, application):
    assert service.submit(application)["success"] is True

    result = service.submit(application)

    assert result["success"] is False
    assert "already applied" in result["message"]


def test_email_conflict_on_insert_is_duplicate_email(store, service, application):
    def racing_applicant(table, payload):
        if table == CARDS:
            store.before_insert = None
            store.seed(CARDS, {"card_number": "OTHER-1", "email": payload["email"]})

    store.before_insert = racing_applicant

    with pytest.raises(DuplicateEmailError):
        service.apply(application)


def test_card_number_race_is_retried_with_suffix(store, service, application):
    def racing_applicant(table, payload):
        if table == CARDS:
            store.before_insert = None
            store.seed(CARDS, {"card_number": payload["card_number"], "email": "racer@example.com"})

    store.before_insert = racing_applicant

    created = service.apply(application)

    assert created["cardNumber"] == "CS-45-12-1"
    assert len(store.rows(CARDS)) == 2


def test_allocation_gives_up_after_max_attempts(store, service, application):
    def always_first(table, payload):
        if table == CARDS:
            store.seed(CARDS, {"card_number": payload["card_number"], "email": None})

    store.before_insert = always_first

    with pytest.raises(ValidationError, match="unique card number"):
        service.apply(application)


def test_other_write_errors_propagate(store, service, application):
    store.fail_inserts[CARDS] = WriteError("connection reset")

    with pytest.raises(WriteError, match="connection reset"):
        service.apply(application)


# ── approval ──────────────────────────────────────────────

def test_approve_without_user_links_student_to_application(store, service, application):
    created = service.apply(application)

    approved = service.approve(created["id"])

    assert approved["status"] == "approved"
    students = store.rows(STUDENTS)
    assert len(students) == 1
    student = students[0]
    assert student["user_id"] == created["id"]
    assert student["card_id"] == "CS-45-12"
    assert student["name"] == "Ali Khan"
    assert student["class"] == "12th"
    assert student["field"] == "Computer Science"
    assert student["roll_no"] == "45"


def test_approve_with_user_links_student_to_user(store, service, application):
    created = service.apply(dict(application, userId="user-99"))

    service.approve(created["id"])

    assert store.rows(STUDENTS)[0]["user_id"] == "user-99"


def test_approving_twice_creates_one_student(store, service, application):
    created = service.apply(application)

    service.approve(created["id"])
    service.approve(created["id"])

    assert len(store.rows(STUDENTS)) == 1


def test_reject_does_not_materialize(store, service, application):
    created = service.apply(application)

    rejected = service.reject(created["id"])

    assert rejected["status"] == "rejected"
    assert store.rows(STUDENTS) == []


def test_status_is_case_insensitive(store, service, application):
    created = service.apply(application)

    assert service.set_status(created["id"], "APPROVED")["status"] == "approved"
    assert len(store.rows(STUDENTS)) == 1


def test_terminal_states_can_be_left(service, application):
    created = service.apply(application)
    service.approve(created["id"])

    assert service.reject(created["id"])["status"] == "rejected"
    assert service.set_status(created["id"], "pending")["status"] == "pending"


def test_set_status_stamps_updated_at(store, service, application):
    created = service.apply(application)

    updated = service.reject(created["id"])

    assert updated["updatedAt"] is not None
    assert updated["updatedAt"] != created["updatedAt"]


def test_unknown_status_is_rejected(service, application):
    created = service.apply(application)

    with pytest.raises(ValidationError):
        service.set_status(created["id"], "archived")


def test_missing_application_returns_none(store, service):
    assert service.approve("no-such-id") is None
    assert store.rows(STUDENTS) == []


def test_approve_raises_when_application_read_fails(store, service, application):
    created = service.apply(application)
    store.fail_reads = True

    with pytest.raises(StoreError):
        service.approve(created["id"])
    assert store.rows(CARDS)[0]["status"] == "pending"
    assert store.rows(STUDENTS) == []


def test_every_transition_is_audited(service, application, caplog):
    created = service.apply(application)
    caplog.set_level(logging.INFO, logger="audit")

    service.reject(created["id"])
    service.reject(created["id"])

    events = [r.getMessage() for r in caplog.records if r.name == "audit"]
    assert len(events) == 2
    assert "action=card.status_changed" in events[0]
    assert "from_status=pending" in events[0]
    assert "to_status=rejected" in events[1]
    assert "from_status=rejected" in events[1]


# ── partial failure ───────────────────────────────────────

def test_student_failure_is_reported_as_partial(store, service, application):
    created = service.apply(application)
    store.fail_inserts[STUDENTS] = WriteError("students table is read-only")

    with pytest.raises(PartialFailureError) as err:
        service.approve(created["id"])

    assert err.value.application["status"] == "approved"
    assert isinstance(err.value.cause, WriteError)
    assert store.rows(CARDS)[0]["status"] == "approved"
    assert store.rows(STUDENTS) == []


def test_reapproval_reconciles_missing_student(store, service, application):
    created = service.apply(application)
    store.fail_inserts[STUDENTS] = WriteError("timeout")
    with pytest.raises(PartialFailureError):
        service.approve(created["id"])

    service.approve(created["id"])

    assert len(store.rows(STUDENTS)) == 1


def test_concurrent_materialization_keeps_single_student(store, service, application):
    created = service.apply(application)

    def other_approver(table, payload):
        if table == STUDENTS:
            store.before_insert = None
            store.seed(STUDENTS, dict(payload))

    store.before_insert = other_approver

    approved = service.approve(created["id"])

    assert approved["status"] == "approved"
    assert len(store.rows(STUDENTS)) == 1
