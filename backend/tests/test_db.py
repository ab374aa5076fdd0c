import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from models import User
from services.identity_service import IdentityService
from utils.db import get_session, is_unique_violation
from utils.errors import StoreFailure


def auth_header(t):
    return {"Authorization": f"Bearer {t}"}


def test_store_error_rolls_back_and_raises_store_failure(session):
    with pytest.raises(StoreFailure) as exc:
        with get_session() as s:
            s.add(User(username="ghost", password_hash="x", display_name="Ghost"))
            s.flush()
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
    assert exc.value.http_status == 503
    assert isinstance(exc.value.__cause__, OperationalError)
    assert IdentityService.find_user(session, "ghost") is None


def test_store_failure_renders_503(client, admin_token, monkeypatch):
    def _broken(session):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(IdentityService, "list_users", staticmethod(_broken))
    r = client.get("/api/admin/users", headers=auth_header(admin_token))
    assert r.status_code == 503
    body = r.get_json()
    assert body["ok"] is False
    assert body["error"]["code"] == "STORE_FAILURE"


def test_non_store_errors_pass_through(session):
    with pytest.raises(KeyError):
        with get_session() as s:
            s.add(User(username="ghost", password_hash="x", display_name="Ghost"))
            s.flush()
            raise KeyError("boom")
    assert IdentityService.find_user(session, "ghost") is None


def _integrity(msg: str) -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception(msg))


def test_unique_violation_matches_named_constraint():
    assert is_unique_violation(
        _integrity("UNIQUE constraint failed: reviewer_scorecards.reviewer_id"),
        "reviewer_scorecards.reviewer_id", "reviewer_scorecards_pkey",
    )
    assert is_unique_violation(
        _integrity('duplicate key value violates unique constraint "uq_trusted_reviewers_pair"'),
        "uq_trusted_reviewers_pair",
    )


def test_other_integrity_errors_are_not_unique_violations():
    assert not is_unique_violation(
        _integrity("NOT NULL constraint failed: reviewer_scorecards.trust_score"),
        "reviewer_scorecards.reviewer_id", "reviewer_scorecards_pkey",
    )
    assert not is_unique_violation(
        _integrity("UNIQUE constraint failed: users.username"),
        "reviewer_scorecards.reviewer_id",
    )
