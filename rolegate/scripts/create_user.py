"""
Create a user (e.g. first admin). Run from project root:
  python -m rolegate.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m rolegate.scripts.create_user admin admin@example.com your-secure-password admin
"""
import argparse
import sys

from rolegate.core.config import get_settings
from rolegate.core.database import build_engine, build_session_factory
from rolegate.core.errors import ConflictError, NotFoundError
from rolegate.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    PasswordHasher,
)
from rolegate.models import User
from rolegate.repositories import RoleRepository, UserRepository
from rolegate.schemas.user import validate_email_address


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Rolegate user.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default="user", help="Role name (default: user)")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    try:
        email = validate_email_address(args.email)
    except ValueError:
        print("Invalid email address.", file=sys.stderr)
        return 1

    settings = get_settings()
    engine = build_engine(settings.database)
    session_factory = build_session_factory(engine)
    hasher = PasswordHasher(rounds=settings.password.cost)
    db = session_factory()
    try:
        roles = RoleRepository(db)
        users = UserRepository(db)
        roles.ensure_defaults()
        try:
            role = roles.find_by_name(args.role)
        except NotFoundError:
            print(f"Role '{args.role}' does not exist.", file=sys.stderr)
            return 1
        try:
            users.find_by_username_or_email(username, email)
            print(f"User '{username}' or email '{email}' already exists.", file=sys.stderr)
            return 1
        except NotFoundError:
            pass
        try:
            users.create(
                User(
                    username=username,
                    email=email,
                    password=hasher.hash(args.password),
                    role_id=role.id,
                )
            )
        except ConflictError:
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        db.commit()
        print(f"Created user '{username}' with role '{role.name}'.")
        return 0
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
