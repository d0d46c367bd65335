from sqlalchemy import select
from sqlalchemy.orm import Session

from diaglab.data.models.session import SessionModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_session_by_token(self, token: str) -> SessionModel | None:
        return self.db.execute(
            select(SessionModel).where(SessionModel.token == token)
        ).scalar_one_or_none()
