import logging
import os

from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_USERS = [
    "owner@example.com",
]


def ensure_default_dev_owner(db: Session, environment: str = "development") -> int:
    """
    Create default users for local development if they do not exist.
    Skips execution outside development and when running under pytest.
    Returns the number of users created.
    """
    if environment != "development" or os.getenv("PYTEST_CURRENT_TEST"):
        return 0

    created = 0
    for email in DEFAULT_DEV_USERS:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            continue

        user = User(
            email=email,
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            is_active=True,
        )
        db.add(user)
        created += 1

    if created:
        db.commit()
        logger.info("Seeded %d development user(s)", created)
    return created
