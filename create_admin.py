# create_admin.py - create or promote an admin account
#
#   python create_admin.py --email admin@medicare.com --password admin123

import argparse
import logging
import sys

import medicare.models  # noqa: F401
from medicare.config.database import Base, SessionLocal, engine
from medicare.models.user import UserRole
from medicare.repositories.user_repository import UserRepository
from medicare.utils.security import hash_password
from medicare.utils.validators import normalize_email

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("create_admin")


def create_admin(email: str, password: str, name: str) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = UserRepository.get_by_email(db, email)
        if user:
            user.role = UserRole.ADMIN
            user.is_blocked = False
            logger.info(f"Promoted existing user {user.email} to ADMIN")
        else:
            user = UserRepository.create(db, name, normalize_email(email), hash_password(password), UserRole.ADMIN)
            logger.info(f"Created admin {user.email}")
        db.commit()
        return user.id
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote an admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="System Admin")
    args = parser.parse_args(argv)

    if len(args.password) < 6:
        logger.error("Password must be at least 6 characters")
        return 1

    create_admin(args.email, args.password, args.name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
