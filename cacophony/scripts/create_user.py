"""
Create a user, e.g. the first site admin (self-registration never grants it).
Run from project root:
  python -m cacophony.scripts.create_user USERNAME PASSWORD [--site-admin]
Example:
  python -m cacophony.scripts.create_user root your-secure-password --site-admin
"""
import argparse
import logging
import sys

from pydantic import ValidationError as PydanticValidationError

from cacophony.core.config import settings
from cacophony.core.database import SessionLocal
from cacophony.core.errors import CacophonyError
from cacophony.schemas.user import UserCreate
from cacophony.services.users import create_user

logger = logging.getLogger("cacophony.scripts.create_user")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Cacophony user.")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("password", help="Password (5-128 chars)")
    parser.add_argument(
        "--site-admin",
        action="store_true",
        help="Grant site-wide admin standing",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        data = UserCreate(
            username=args.username.strip(),
            password=args.password,
            is_site_admin=args.site_admin,
        )
    except PydanticValidationError as e:
        print(f"Invalid user: {e.errors()[0]['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = create_user(db, data)
    except CacophonyError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.username}' (id={user.id}, site_admin={user.is_site_admin}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
