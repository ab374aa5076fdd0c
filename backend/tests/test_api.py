def auth_header(t):
    return {"Authorization": f"Bearer {t}"}


def test_healthz(client):
    r = client.get("/api/healthz")
    assert r.status_code == 200
    assert r.get_json()["db"]["ok"] is True


def test_register_login_me(client):
    r = client.post("/api/auth/register", json={"username": "newbie", "password": "pw"})
    assert r.status_code == 201
    assert r.get_json()["user"]["roles"] == ["student"]

    dup = client.post("/api/auth/register", json={"username": "newbie", "password": "pw"})
    assert dup.status_code == 409
    assert dup.get_json()["error"]["code"] == "CONFLICT"

    bad = client.post("/api/auth/login", json={"username": "newbie", "password": "wrong"})
    assert bad.status_code == 401

    tok = client.post("/api/auth/login", json={"username": "newbie", "password": "pw"}).get_json()["access_token"]
    me = client.get("/api/auth/me", headers=auth_header(tok))
    assert me.get_json()["user"]["username"] == "newbie"


def test_self_registration_cannot_claim_admin(client):
    r = client.post("/api/auth/register", json={"username": "sneaky", "password": "pw", "roles": ["admin"]})
    assert r.status_code == 403


def test_question_thread_flow(client, student_token, make_user, login):
    make_user("rev", "student", "reviewer")
    rev_token = login("rev")

    r = client.post("/api/questions", json={"title": "Recursion", "text": "why?"}, headers=auth_header(student_token))
    assert r.status_code == 201
    qid = r.get_json()["id"]

    r = client.post(f"/api/questions/{qid}/answers", json={"text": "base case"}, headers=auth_header(rev_token))
    assert r.status_code == 201
    aid = r.get_json()["id"]

    r = client.post("/api/reviews", json={"text": "good", "answer_id": aid}, headers=auth_header(rev_token))
    assert r.status_code == 201

    both = client.post("/api/reviews", json={"text": "x", "answer_id": aid, "question_id": qid},
                       headers=auth_header(rev_token))
    assert both.status_code == 422

    thread = client.get(f"/api/questions/{qid}").get_json()["question"]
    assert thread["answers"][0]["reviews"][0]["text"] == "good"

    missing = client.get("/api/questions/9999")
    assert missing.status_code == 404
    assert missing.get_json()["error"]["code"] == "NOT_FOUND"


def test_only_author_edits_question(client, student_token, make_user, login):
    make_user("other")
    other_token = login("other")
    qid = client.post("/api/questions", json={"title": "t", "text": "x"}, headers=auth_header(student_token)).get_json()["id"]
    r = client.patch(f"/api/questions/{qid}", json={"title": "hacked", "text": "x"}, headers=auth_header(other_token))
    assert r.status_code == 403


def test_trust_endpoints(client, student_token, make_user):
    make_user("rev", "student", "reviewer")
    r = client.put("/api/trust/rev", json={"weight": 5}, headers=auth_header(student_token))
    assert r.status_code == 200
    r = client.put("/api/trust/rev", json={"weight": 8}, headers=auth_header(student_token))
    items = client.get("/api/trust", headers=auth_header(student_token)).get_json()["items"]
    assert items == [{"username": "rev", "weight": 8}]

    bad = client.put("/api/trust/rev", json={"weight": 99}, headers=auth_header(student_token))
    assert bad.status_code == 422


def test_role_request_flow(client, student_token, instructor_token, session):
    r = client.post("/api/role-requests", headers=auth_header(student_token))
    assert r.status_code == 201
    rid = r.get_json()["request"]["id"]

    again = client.post("/api/role-requests", headers=auth_header(student_token))
    assert again.status_code == 409

    forbidden = client.get("/api/role-requests/pending", headers=auth_header(student_token))
    assert forbidden.status_code == 403

    pending = client.get("/api/role-requests/pending", headers=auth_header(instructor_token)).get_json()["items"]
    assert [p["id"] for p in pending] == [rid]

    for _ in range(2):
        d = client.post(f"/api/role-requests/{rid}/decision", json={"approve": True}, headers=auth_header(instructor_token))
        assert d.status_code == 200
        assert d.get_json()["request"]["status"] == "APPROVED"

    flip = client.post(f"/api/role-requests/{rid}/decision", json={"approve": False}, headers=auth_header(instructor_token))
    assert flip.status_code == 409


def test_admin_request_flow(client, instructor_token, admin_token):
    rid = client.post("/api/admin-requests", json={"description": "projector"},
                      headers=auth_header(instructor_token)).get_json()["id"]
    r = client.post(f"/api/admin-requests/{rid}/close", headers=auth_header(admin_token))
    assert r.get_json()["request"]["status"] == "CLOSED"

    new_id = client.post(f"/api/admin-requests/{rid}/reopen", json={"description": "projector again"},
                         headers=auth_header(instructor_token)).get_json()["id"]
    chain = client.get(f"/api/admin-requests/{new_id}/lineage", headers=auth_header(admin_token)).get_json()["items"]
    assert [c["id"] for c in chain] == [rid, new_id]
    assert chain[1]["status"] == "REOPENED"


def test_scorecard_requires_instructor(client, student_token, instructor_token, make_user):
    make_user("rev", "student", "reviewer")
    body = {"review_count": 3, "average_rating": 5.0, "helpfulness_score": 1.0, "response_time_hours": 10}
    assert client.put("/api/scorecards/rev", json=body, headers=auth_header(student_token)).status_code == 403
    r = client.put("/api/scorecards/rev", json=body, headers=auth_header(instructor_token))
    assert r.status_code == 200
    assert r.get_json()["scorecard"]["trust_score"] == 2.6


def test_staff_metrics(client, staff_token, student_token):
    client.post("/api/questions", json={"title": "t", "text": "x"}, headers=auth_header(student_token))
    rows = client.get("/api/staff/metrics", headers=auth_header(staff_token)).get_json()["items"]
    assert rows == [{"username": "stu", "name": "Stu", "question_count": 1, "answer_count": 0}]


def test_missing_token(client):
    r = client.post("/api/questions", json={"title": "t", "text": "x"})
    assert r.status_code == 401
    assert r.get_json()["error"]["code"] == "JWT_MISSING"


def test_scorecard_nan_is_validation_error(client, instructor_token, make_user):
    make_user("rev", "student", "reviewer")
    raw = '{"review_count": 1, "average_rating": NaN, "helpfulness_score": 1.0, "response_time_hours": 5}'
    r = client.put("/api/scorecards/rev", data=raw, content_type="application/json",
                   headers=auth_header(instructor_token))
    assert r.status_code == 422
    assert r.get_json()["error"]["code"] == "VALIDATION_FAILED"
