import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from agenda.auth import jwt_handler
from agenda.core.errors import NotAuthenticatedError, NotAuthorizedError
from agenda.database import get_db
from agenda.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise NotAuthenticatedError

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise NotAuthenticatedError("Invalid token.") from exc

    email = payload.get("sub")
    if not email:
        raise NotAuthenticatedError("Invalid token subject.")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise NotAuthenticatedError("User not found.")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        logger.warning("User %s attempted an admin-only operation.", current_user.email)
        raise NotAuthorizedError
    return current_user
