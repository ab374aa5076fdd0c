import pytest

from services.question_service import QuestionService
from services.staff_service import StaffService
from utils.errors import NotFound, ValidationFailed


@pytest.fixture()
def forum(session, make_user):
    make_user("ta", "staff")
    make_user("prof", "instructor")
    make_user("ann")
    make_user("ben")
    q1 = QuestionService.ask(session, "ann", "q1", "one")
    QuestionService.ask(session, "ann", "q2", "two")
    QuestionService.clarify(session, q1, "ann", "c", "clar")
    QuestionService.answer(session, q1, "ben", "a1")
    return q1


def test_content_overview_tags_items(session, forum):
    items = StaffService.content_overview(session)
    assert [i["content_type"] for i in items] == ["QUESTION", "QUESTION", "ANSWER"]
    assert items[2]["author"] == "ben"
    assert items[2]["title"] == "q1"


def test_student_content_history(session, forum):
    items = StaffService.student_content_history(session, "ben")
    assert [(i["content_type"], i["text"]) for i in items] == [("ANSWER", "a1")]


def test_activity_metrics_counts_students_only(session, forum):
    rows = StaffService.activity_metrics(session)
    assert [(r["username"], r["question_count"], r["answer_count"]) for r in rows] == [
        ("ann", 2, 0),
        ("ben", 0, 1),
    ]


def test_moderation_log_history(session, forum):
    StaffService.log_moderation(session, "ta", "question", forum, "edit", reason="typo",
                                original_content="one", modified_content="One")
    StaffService.log_moderation(session, "ta", "Question", forum, "flag")
    history = StaffService.moderation_history(session, "question", forum)
    assert [m.action for m in history] == ["flag", "edit"]
    with pytest.raises(ValidationFailed):
        StaffService.log_moderation(session, "ta", "post", forum, "edit")


def test_escalation_lifecycle(session, forum):
    esc = StaffService.escalate(session, "ta", "ann", "conduct", "rude reply", priority="high")
    assert esc.priority == "HIGH"
    assert [e.id for e in StaffService.list_open_escalations(session)] == [esc.id]

    StaffService.update_escalation(session, esc.id, "resolved", "prof")
    assert StaffService.list_open_escalations(session) == []
    with pytest.raises(NotFound):
        StaffService.update_escalation(session, 999, "resolved", "prof")
    with pytest.raises(ValidationFailed):
        StaffService.escalate(session, "ta", "ann", "x", "y", priority="urgent")


def test_discussions_newest_first(session, forum):
    a = StaffService.post_discussion(session, "ta", "week 1", "notes")
    b = StaffService.post_discussion(session, "prof", "week 2", "more notes")
    assert [d.id for d in StaffService.list_discussions(session)] == [b.id, a.id]
