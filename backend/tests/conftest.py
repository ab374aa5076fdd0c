import os
import tempfile

import pytest

# 在匯入 app 之前指向暫存的 sqlite 與設定目錄
_TMP = tempfile.mkdtemp(prefix="courseforum_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["CONFIG_DIR"] = _TMP
os.environ.setdefault("JWT_SECRET_KEY", "test")
os.environ.setdefault("SECRET_KEY", "test")


@pytest.fixture(scope="session")
def app():
    from app import create_app  # type: ignore
    a = create_app()
    a.testing = True
    return a


@pytest.fixture(autouse=True)
def _fresh_tables(app):
    from utils.db import Base, get_engine  # type: ignore
    from utils.config_handler import DEFAULT_DATA, save_config  # type: ignore

    eng = get_engine()
    Base.metadata.drop_all(eng)
    Base.metadata.create_all(eng)
    save_config(DEFAULT_DATA.copy())
    yield


@pytest.fixture()
def session(app):
    import utils.db as db  # type: ignore
    s = db.SessionLocal()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(session):
    """建立使用者：make_user("alice", "student", "reviewer")"""
    from services.identity_service import IdentityService  # type: ignore

    def _make(username: str, *roles: str, password: str = "pw", display_name: str = ""):
        return IdentityService.register(
            session, username, password,
            display_name=display_name or username.title(),
            roles=roles or ("student",),
        )
    return _make


@pytest.fixture()
def login(client):
    def _login(username: str, password: str = "pw") -> str:
        r = client.post("/api/auth/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.data
        return r.get_json()["access_token"]
    return _login


@pytest.fixture()
def student_token(make_user, login):
    make_user("stu", "student")
    return login("stu")


@pytest.fixture()
def instructor_token(make_user, login):
    make_user("prof", "instructor")
    return login("prof")


@pytest.fixture()
def admin_token(make_user, login):
    make_user("root", "admin")
    return login("root")


@pytest.fixture()
def staff_token(make_user, login):
    make_user("ta", "staff")
    return login("ta")
