"""
Tests for the generic CRUD helpers and database error translation.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from dealer_console.db import Dealer, JoinSubmission
from dealer_console.exceptions import (
    ErrorCode,
    NotFoundError,
    RepositoryError,
    TransportError,
)
from dealer_console.utils.crud_helpers import (
    create_record,
    get_record,
    get_records_in,
    list_records,
    update_record,
    wrap_db_error,
)
from tests.fixtures.factories import DealerFactory, JoinSubmissionFactory


class TestWrapDbError:
    def test_connection_failures_become_transport_errors(self):
        error = wrap_db_error("read", Dealer, OperationalError("SELECT 1", {}, Exception("gone")))

        assert isinstance(error, TransportError)
        assert error.context["model"] == "Dealer"

    def test_integrity_errors_become_duplicates(self):
        error = wrap_db_error("create", Dealer, IntegrityError("INSERT", {}, Exception("unique")))

        assert error.status_code == 409
        assert error.error_code == ErrorCode.DUPLICATE

    def test_console_errors_pass_through(self):
        original = NotFoundError("missing")

        assert wrap_db_error("read", Dealer, original) is original


class TestCrudHelpers:
    def test_create_and_get(self, db_session):
        dealer = create_record(
            db_session, Dealer, {"name": "North Cars", "email": "north@example.com", "role": "dealer"}
        )

        assert dealer.id
        assert dealer.created_at is not None
        assert get_record(db_session, Dealer, {"email": "north@example.com"}).id == dealer.id

    def test_get_with_none_key_matches_null_only(self, db_session):
        DealerFactory()

        assert get_record(db_session, Dealer, {"id": None}) is None
        assert get_record(db_session, Dealer, {"email": None}) is None

    def test_duplicate_email(self, db_session):
        DealerFactory(email="taken@example.com")

        with pytest.raises(RepositoryError) as exc_info:
            create_record(
                db_session, Dealer, {"name": "Copy", "email": "taken@example.com", "role": "dealer"}
            )

        assert exc_info.value.error_code == ErrorCode.DUPLICATE

    def test_update_skips_none_unless_asked(self, db_session):
        submission = JoinSubmissionFactory(notes="Keep me")

        update_record(db_session, JoinSubmission, submission.id, {"status": "reviewing", "notes": None})
        assert submission.notes == "Keep me"

        update_record(db_session, JoinSubmission, submission.id, {"notes": None}, include_none=True)
        assert submission.notes is None
        assert submission.status == "reviewing"

    def test_update_missing_record(self, db_session):
        with pytest.raises(NotFoundError):
            update_record(db_session, Dealer, "missing", {"name": "x"})

    def test_get_records_in(self, db_session):
        dealers = DealerFactory.create_batch(3)

        found = get_records_in(db_session, Dealer, "id", [dealers[0].id, dealers[2].id, "missing"])

        assert {d.id for d in found} == {dealers[0].id, dealers[2].id}
        assert get_records_in(db_session, Dealer, "id", []) == []

    def test_list_with_filters_and_paging(self, db_session):
        JoinSubmissionFactory.create_batch(3, status="pending")
        JoinSubmissionFactory(status="approved")

        assert len(list_records(db_session, JoinSubmission, {"status": "pending"})) == 3
        assert len(list_records(db_session, JoinSubmission, limit=2)) == 2
        assert len(list_records(db_session, JoinSubmission, limit=10, offset=3)) == 1
