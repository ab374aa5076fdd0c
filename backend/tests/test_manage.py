import manage
from services.identity_service import IdentityService


def test_create_user_and_roles(session, capsys):
    assert manage.main(["manage.py", "create-user", "zoe", "pw", "student", "reviewer"]) == 0
    assert "created: zoe" in capsys.readouterr().out
    assert manage.main(["manage.py", "create-user", "zoe", "pw"]) == 0
    assert "exists: zoe" in capsys.readouterr().out

    assert IdentityService.find_user(session, "zoe").roles == {"student", "reviewer"}
    assert IdentityService.check_credentials(session, "zoe", "pw")


def test_last_admin_guard_reports_error(session, capsys):
    assert manage.main(["manage.py", "create-admin", "root", "pw"]) == 0
    assert manage.main(["manage.py", "set-roles", "root", "staff"]) == 1
    assert "CONFLICT" in capsys.readouterr().out


def test_unknown_command_prints_usage(capsys):
    assert manage.main(["manage.py", "explode"]) == 2
    assert "usage:" in capsys.readouterr().out
