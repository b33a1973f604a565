"""
Create an account (e.g. the first admin). Run from backend/:
  python -m herdbook.scripts.create_user EMAIL PASSWORD [role] [--full-name NAME]
Example:
  python -m herdbook.scripts.create_user owner@farm.example your-secure-password admin
"""
import argparse
import sys

from sqlmodel import Session

from herdbook.database import engine, init_db
from herdbook.errors import AuthError
from herdbook.services.accounts import create_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Herdbook account.")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    parser.add_argument("--full-name", default=None)
    args = parser.parse_args(argv)

    init_db()
    with Session(engine) as session:
        try:
            user = create_user(
                session,
                email=args.email,
                password=args.password,
                full_name=args.full_name,
                role=args.role,
            )
        except AuthError as e:
            print(e.detail, file=sys.stderr)
            return 1
    print(f"Created account '{user.email}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
