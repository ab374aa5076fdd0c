import pytest

from services.scorecard_service import ScorecardService, compute_trust_score, response_factor
from utils.errors import NotFound, ValidationFailed


def test_trust_score_fast_reviewer():
    assert compute_trust_score(5.0, 1.0, 10) == pytest.approx(2.6)


def test_trust_score_slow_reviewer():
    assert compute_trust_score(3.0, 0.5, 96) == pytest.approx(1.5)


def test_response_factor_steps_at_24_hours():
    assert response_factor(23.9) == 1.0
    assert response_factor(24) == pytest.approx(2.0)
    assert response_factor(48) == pytest.approx(1.0)


def test_upsert_and_recompute(session, make_user):
    make_user("rev", "student", "reviewer")
    card = ScorecardService.upsert(session, "rev", 10, 5.0, 1.0, 10)
    assert card.trust_score == pytest.approx(2.6)

    card = ScorecardService.upsert(session, "rev", 12, 3.0, 0.5, 96)
    assert card.review_count == 12
    assert ScorecardService.get(session, "rev").trust_score == pytest.approx(1.5)
    assert len(ScorecardService.list_all(session)) == 1


def test_list_sorted_by_trust_score(session, make_user):
    for name in ("ann", "ben", "cat"):
        make_user(name, "student", "reviewer")
    ScorecardService.upsert(session, "ann", 1, 3.0, 0.5, 96)
    ScorecardService.upsert(session, "ben", 1, 5.0, 1.0, 10)
    ScorecardService.upsert(session, "cat", 1, 3.0, 0.5, 96)
    assert [c.reviewer.username for c in ScorecardService.list_all(session)] == ["ben", "ann", "cat"]


def test_negative_inputs_rejected(session, make_user):
    make_user("rev", "student", "reviewer")
    with pytest.raises(ValidationFailed):
        ScorecardService.upsert(session, "rev", -1, 4.0, 1.0, 5)
    with pytest.raises(ValidationFailed):
        ScorecardService.upsert(session, "rev", 1, 4.0, 1.0, -5)


def test_missing_scorecard(session, make_user):
    make_user("rev", "student", "reviewer")
    with pytest.raises(NotFound):
        ScorecardService.get(session, "rev")


@pytest.mark.parametrize("field", ["average_rating", "helpfulness_score", "response_time_hours"])
@pytest.mark.parametrize("bad", [float("nan"), float("inf")])
def test_non_finite_inputs_rejected(session, make_user, field, bad):
    make_user("rev", "student", "reviewer")
    values = {"average_rating": 4.0, "helpfulness_score": 1.0, "response_time_hours": 5.0}
    values[field] = bad
    with pytest.raises(ValidationFailed):
        ScorecardService.upsert(session, "rev", 1, **values)
    assert ScorecardService.list_all(session) == []
