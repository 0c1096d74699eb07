"""Utility script to create an initial user in the database."""

from __future__ import annotations

import argparse
from getpass import getpass

from sqlalchemy.exc import SQLAlchemyError

from portal.application.use_cases.users import ROLE_NAMES, create_user
from portal.domain.errors import ValidationError
from portal.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Create an initial user for the association portal.",
    )
    parser.add_argument("--name", default="Administrator", help="Full name of the user")
    parser.add_argument(
        "--email",
        default="admin@example.com",
        help="Login email of the user (default: admin@example.com)",
    )
    parser.add_argument(
        "--role",
        default="superadmin",
        choices=sorted(ROLE_NAMES),
        help="Role alias of the user (default: superadmin)",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Password of the user. Prompted interactively when omitted.",
    )
    return parser.parse_args()


def main() -> None:
    """Create a user using the provided command line arguments."""

    args = parse_args()

    password = args.password or getpass("Password: ")
    if not password:
        raise SystemExit("A password is required.")

    initialize_database()

    session = SessionLocal()
    try:
        user = create_user(
            session,
            name=args.name,
            email=args.email,
            password=password,
            role_alias=args.role,
        )
    except ValidationError as exc:
        session.rollback()
        raise SystemExit(f"Could not create the user: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not store the user: {exc}") from exc
    else:
        print(
            "User created:\n"
            f"  ID: {user.id}\n"
            f"  Name: {user.name}\n"
            f"  Email: {user.email}\n"
            f"  Role: {user.role.alias}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
