import pytest

from models import RoleRequest, RoleRequestStatus, AdminRequestStatus
from services.admin_request_service import AdminRequestService
from services.identity_service import IdentityService
from services.role_request_service import RoleRequestService
from utils.errors import Conflict, NotFound, ValidationFailed


# ---- 角色申請 ----

def test_second_submit_conflicts(session, make_user):
    make_user("stu")
    RoleRequestService.submit_or_raise(session, "stu")
    with pytest.raises(Conflict):
        RoleRequestService.submit_or_raise(session, "stu")
    assert session.query(RoleRequest).filter_by(status=RoleRequestStatus.PENDING.value).count() == 1


def test_submit_bool_form(session, make_user):
    make_user("stu")
    assert RoleRequestService.submit(session, "stu") is True
    assert RoleRequestService.submit(session, "stu") is False


def test_approve_twice_is_idempotent(session, make_user):
    make_user("stu")
    make_user("prof", "instructor")
    req = RoleRequestService.submit_or_raise(session, "stu")

    RoleRequestService.decide(session, req.id, "prof", True)
    RoleRequestService.decide(session, req.id, "prof", True)

    session.expire_all()
    user = IdentityService.get_user(session, "stu")
    assert [g.role for g in user.role_grants].count("reviewer") == 1
    assert user.roles == {"student", "reviewer"}
    assert RoleRequestService.status_of(session, req.id) == "APPROVED"


def test_opposite_decision_on_terminal_conflicts(session, make_user):
    make_user("stu")
    make_user("prof", "instructor")
    req = RoleRequestService.submit_or_raise(session, "stu")
    RoleRequestService.decide(session, req.id, "prof", False)
    with pytest.raises(Conflict):
        RoleRequestService.decide(session, req.id, "prof", True)
    assert not IdentityService.get_user(session, "stu").has_role("reviewer")


def test_new_request_allowed_after_rejection(session, make_user):
    make_user("stu")
    make_user("prof", "instructor")
    first = RoleRequestService.submit_or_raise(session, "stu")
    RoleRequestService.decide(session, first.id, "prof", False)
    assert RoleRequestService.submit(session, "stu") is True
    assert len(RoleRequestService.list_for_student(session, "stu")) == 2


def test_list_pending_oldest_first(session, make_user):
    make_user("ann", display_name="Ann A.")
    make_user("ben")
    a = RoleRequestService.submit_or_raise(session, "ann")
    b = RoleRequestService.submit_or_raise(session, "ben")
    pending = RoleRequestService.list_pending(session)
    assert [r.id for r in pending] == [a.id, b.id]
    assert pending[0].student.display_name == "Ann A."


def test_decide_unknown_request(session, make_user):
    make_user("prof", "instructor")
    with pytest.raises(NotFound):
        RoleRequestService.decide(session, 42, "prof", True)


# ---- 行政請求 ----

def test_reopen_creates_linked_row(session, make_user):
    make_user("prof", "instructor")
    make_user("root", "admin")
    orig = AdminRequestService.create(session, "prof", "need a room")
    AdminRequestService.close(session, orig, "root")

    new_id = AdminRequestService.reopen(session, orig, "new text")
    new = AdminRequestService.get(session, new_id)
    assert new.status == AdminRequestStatus.REOPENED.value
    assert new.original_request_id == orig
    assert new.instructor.username == "prof"
    assert new.description == "new text"

    original = AdminRequestService.get(session, orig)
    assert original.status == AdminRequestStatus.CLOSED.value
    assert original.description == "need a room"
    assert original.closed_by_user.username == "root"


def test_reopen_requires_closed(session, make_user):
    make_user("prof", "instructor")
    orig = AdminRequestService.create(session, "prof", "x")
    with pytest.raises(Conflict):
        AdminRequestService.reopen(session, orig, "again")
    with pytest.raises(NotFound):
        AdminRequestService.reopen(session, 999, "again")


def test_close_twice_conflicts(session, make_user):
    make_user("prof", "instructor")
    make_user("root", "admin")
    rid = AdminRequestService.create(session, "prof", "x")
    AdminRequestService.close(session, rid, "root")
    with pytest.raises(Conflict):
        AdminRequestService.close(session, rid, "root")


def test_lineage_runs_from_first_request(session, make_user):
    make_user("prof", "instructor")
    make_user("root", "admin")
    first = AdminRequestService.create(session, "prof", "v1")
    AdminRequestService.close(session, first, "root")
    second = AdminRequestService.reopen(session, first, "v2")
    AdminRequestService.close(session, second, "root")
    third = AdminRequestService.reopen(session, second, "v3")

    assert [r.id for r in AdminRequestService.lineage(session, third)] == [first, second, third]
    assert [r.id for r in AdminRequestService.list_all(session)][0] == third


def test_blank_description_rejected(session, make_user):
    make_user("prof", "instructor")
    with pytest.raises(ValidationFailed):
        AdminRequestService.create(session, "prof", "   ")
