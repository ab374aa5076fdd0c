"""
Module: backend/manage.py
Unified comment style: module docstring + minimal inline notes.
"""
import sys
from utils.db import get_session, init_engine_session
from utils.errors import ServiceError
from services.identity_service import IdentityService

USAGE = """usage:
  python manage.py create-user <username> <password> [role ...]
  python manage.py create-admin <username> <password>
  python manage.py set-password <username> <password>
  python manage.py set-roles <username> <role> [role ...]
  python manage.py seed"""


def create_user(username: str, password: str, roles: list[str]) -> None:
    """Idempotent user creation helper.
    Creates the user if it does not exist; otherwise prints a notice.
    """
    with get_session() as s:
        if IdentityService.find_user(s, username):
            print(f"exists: {username}")
            return
        u = IdentityService.register(s, username, password, roles=roles or ["student"])
        print(f"created: {username} ({', '.join(sorted(u.roles))})")


def set_password(username: str, password: str) -> None:
    from werkzeug.security import generate_password_hash
    with get_session() as s:
        u = IdentityService.get_user(s, username)
        u.password_hash = generate_password_hash(password)
        s.commit()
        print(f"updated password: {username}")


def set_roles(username: str, roles: list[str]) -> None:
    with get_session() as s:
        u = IdentityService.set_roles(s, username, roles)
        print(f"roles: {username} -> {', '.join(sorted(u.roles))}")


def seed_defaults() -> None:
    create_user("admin", "admin123", ["admin"])
    create_user("prof", "prof123", ["instructor"])
    create_user("ta", "ta123", ["staff"])
    create_user("student", "student123", ["student"])


def main(argv: list[str]) -> int:
    try:
        init_engine_session()
    except ServiceError as e:
        print(f"DB init failed: {e.message}")
        return 1

    cmd = argv[1] if len(argv) >= 2 else "seed"
    args = argv[2:]
    try:
        if cmd == "create-user" and len(args) >= 2:
            create_user(args[0], args[1], args[2:])
        elif cmd == "create-admin" and len(args) == 2:
            create_user(args[0], args[1], ["admin"])
        elif cmd == "set-password" and len(args) == 2:
            set_password(args[0], args[1])
        elif cmd == "set-roles" and len(args) >= 2:
            set_roles(args[0], args[1:])
        elif cmd == "seed":
            seed_defaults()
        else:
            print(USAGE)
            return 2
    except ServiceError as e:
        print(f"{e.code}: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
