import pytest

from models import Question
from services.question_service import QuestionService
from services.review_service import ReviewService
from utils.errors import NotFound, ValidationFailed


def test_ask_and_get_thread(session, make_user):
    make_user("alice")
    qid = QuestionService.ask(session, "alice", "Loops", "How do for-loops work?")
    q = QuestionService.get(session, qid)
    assert q.title == "Loops"
    assert q.parent_id is None
    assert q.resolved is False
    assert q.clarification is None


def test_ask_rejects_blank_title(session, make_user):
    make_user("alice")
    with pytest.raises(ValidationFailed):
        QuestionService.ask(session, "alice", "  ", "body")


def test_get_missing_question(session):
    with pytest.raises(NotFound):
        QuestionService.get(session, 404)


def test_clarification_chain_keeps_lowest_id_child(session, make_user):
    alice = make_user("alice")
    root = QuestionService.ask(session, "alice", "root", "root text")
    # 先插入 id 9 再插入 id 7，仍應選到 7
    session.add(Question(id=9, parent_id=root, author_id=alice.id, title="c9", text="nine"))
    session.add(Question(id=7, parent_id=root, author_id=alice.id, title="c7", text="seven"))
    session.commit()
    session.expire_all()

    q = QuestionService.get(session, root)
    assert q.clarification.id == 7
    assert [c.id for c in QuestionService.list_clarifications(session, root)] == [7, 9]


def test_render_thread_nests_clarifications_and_reviews(session, make_user):
    make_user("alice")
    make_user("rev", "student", "reviewer")
    root = QuestionService.ask(session, "alice", "root", "root text")
    child = QuestionService.clarify(session, root, "alice", "more", "more detail")
    aid = QuestionService.answer(session, child, "rev", "try this")
    ReviewService.review_answer(session, aid, "rev", "solid")
    ReviewService.review_question(session, root, "rev", "clear question")

    thread = QuestionService.render_thread(session, root)
    assert [r["text"] for r in thread["reviews"]] == ["clear question"]
    assert thread["clarification"]["id"] == child
    nested = thread["clarification"]["answers"]
    assert nested[0]["text"] == "try this"
    assert nested[0]["reviews"][0]["reviewer"] == "rev"
    assert thread["clarification"]["clarification"] is None


def test_clarify_missing_parent(session, make_user):
    make_user("alice")
    with pytest.raises(NotFound):
        QuestionService.clarify(session, 123, "alice", "t", "x")


def test_update_returns_false_when_absent(session, make_user):
    make_user("alice")
    qid = QuestionService.ask(session, "alice", "old", "old text")
    assert QuestionService.update(session, qid, "new", "new text") is True
    assert QuestionService.get(session, qid).title == "new"
    assert QuestionService.update(session, 999, "x", "y") is False


def test_resolved_flags_are_independent(session, make_user):
    make_user("alice")
    make_user("bob")
    qid = QuestionService.ask(session, "alice", "q", "text")
    a1 = QuestionService.answer(session, qid, "bob", "one")
    a2 = QuestionService.answer(session, qid, "bob", "two")

    QuestionService.set_answer_resolves(session, a1, True)
    QuestionService.set_answer_resolves(session, a2, True)
    answers = QuestionService.list_answers(session, qid)
    assert [a.resolves for a in answers] == [True, True]
    assert QuestionService.get(session, qid).resolved is False

    QuestionService.set_resolved(session, qid, True)
    assert QuestionService.get(session, qid).resolved is True
    QuestionService.set_resolved(session, qid, False)
    assert QuestionService.get(session, qid).resolved is False


def test_list_by_author_newest_first(session, make_user):
    make_user("alice")
    make_user("bob")
    first = QuestionService.ask(session, "alice", "first", "1")
    QuestionService.ask(session, "bob", "other", "x")
    second = QuestionService.ask(session, "alice", "second", "2")
    QuestionService.clarify(session, first, "alice", "clar", "c")

    assert [q.id for q in QuestionService.list_by_author(session, "alice")] == [second, first]


def test_list_roots_excludes_clarifications(session, make_user):
    make_user("alice")
    root = QuestionService.ask(session, "alice", "root", "r")
    QuestionService.clarify(session, root, "alice", "clar", "c")
    assert [q.id for q in QuestionService.list_roots(session)] == [root]


def test_update_answer(session, make_user):
    make_user("alice")
    qid = QuestionService.ask(session, "alice", "q", "text")
    aid = QuestionService.answer(session, qid, "alice", "draft")
    QuestionService.update_answer(session, aid, "final")
    assert QuestionService.get_answer(session, aid).text == "final"
    with pytest.raises(NotFound):
        QuestionService.update_answer(session, 999, "x")
