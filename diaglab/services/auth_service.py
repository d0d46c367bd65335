# diaglab/services/auth_service.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from diaglab.data.models.user import UserModel
from diaglab.repos.user_repo import UserRepo
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)


class AuthService:
    """Resolves a bearer token to its user. Sessions are issued elsewhere."""

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def resolve(self, token: str | None) -> UserModel | None:
        if not token:
            return None

        session = self.repo.get_session_by_token(token)
        if not session:
            logger.info("Rejected unknown bearer token")
            return None

        expires_at = session.expires_at
        if expires_at.tzinfo is None:
            # sqlite hands back naive datetimes, they are stored as UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        if expires_at <= datetime.now(timezone.utc):
            logger.info(f"Rejected expired session {session.id}")
            return None

        return session.user
