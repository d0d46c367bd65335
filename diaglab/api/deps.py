# diaglab/api/deps.py
"""Request-level dependencies shared by the routers: identity, ids, bodies, paging."""
from typing import Optional, Type, TypeVar

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from diaglab.data.database import get_db
from diaglab.data.models.user import UserModel
from diaglab.domain.errors import InvalidId, Unauthorized, UserIdNotAllowed, ValidationFailed
from diaglab.services.auth_service import AuthService
from diaglab.services.lock_service import LockService

MAX_LIMIT = 100
DEFAULT_LIMIT = 10

bearer = HTTPBearer(auto_error=False)

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> UserModel:
    token = credentials.credentials if credentials else None
    user = AuthService(db).resolve(token)
    if user is None:
        raise Unauthorized()
    return user


def _parse_id(raw: Optional[str]) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidId()
    if value <= 0:
        raise InvalidId()
    return value


def required_id(id: Optional[str] = Query(None)) -> int:
    return _parse_id(id)


def optional_id(id: Optional[str] = Query(None)) -> Optional[int]:
    if id is None:
        return None
    return _parse_id(id)


async def json_body(request: Request) -> dict:
    """The raw JSON object, refused if it tries to carry an identity."""
    try:
        body = await request.json()
    except ValueError:
        raise ValidationFailed("INVALID_REQUEST_BODY", "Request body must be a JSON object")

    if not isinstance(body, dict):
        raise ValidationFailed("INVALID_REQUEST_BODY", "Request body must be a JSON object")

    if "userId" in body or "user_id" in body:
        raise UserIdNotAllowed()

    return body


def parse_body(model: Type[ModelT], body: dict) -> ModelT:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationFailed("INVALID_REQUEST", f"Invalid value for '{field}': {first['msg']}")


class Page:
    def __init__(
        self,
        limit: int = Query(DEFAULT_LIMIT),
        offset: int = Query(0),
    ):
        # 0 means "not given", like a missing limit
        self.limit = max(1, min(limit or DEFAULT_LIMIT, MAX_LIMIT))
        self.offset = max(0, offset)


_lock_service: LockService | None = None


def get_lock_service() -> LockService:
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service
