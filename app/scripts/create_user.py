"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD [role]
Example:
  python -m app.scripts.create_user admin your-secure-password Admin
"""
import argparse
import logging
import sys

from app.api.v1.auth import get_password_hasher, get_token_issuer
from app.core.config import get_settings
from app.core.database import session_scope
from app.core.logging_config import configure_logging
from app.repositories import SqlUserRepository
from app.schemas.auth import ROLE_ADMIN, ROLE_USER
from app.services.auth import AuthService, UsernameTakenError
from app.services.errors import ValidationError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Stockroom user from the command line.")
    parser.add_argument("username", help="Username (1-50 chars, case-sensitive)")
    parser.add_argument("password", help="Password")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=[ROLE_USER, ROLE_ADMIN])
    args = parser.parse_args(argv)

    configure_logging(get_settings().LOG_LEVEL)
    with session_scope() as db:
        auth = AuthService(SqlUserRepository(db), get_password_hasher(), get_token_issuer())
        try:
            user = auth.register(args.username.strip(), args.password, args.role)
        except (ValidationError, UsernameTakenError) as e:
            print(e.message, file=sys.stderr)
            return 1
    print(f"Created user '{user.username}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
