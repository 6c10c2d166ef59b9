import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from agenda.auth import jwt_handler
from agenda.auth.dependencies import get_current_user
from agenda.auth.passwords import verify_password
from agenda.core.errors import NotAuthenticatedError
from agenda.database import get_db
from agenda.models.user import User

router = APIRouter(tags=["auth"])

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("Email is required.")
        return normalized

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return value


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class CurrentUserResponse(BaseModel):
    email: str
    role: str


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if user is None or not verify_password(data.password, user.hashed_password):
        logger.warning("Failed login attempt for %s.", data.email)
        raise NotAuthenticatedError("Invalid email or password.")

    token = jwt_handler.create_access_token(subject=user.email, role=user.role)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=CurrentUserResponse)
def me(current_user: User = Depends(get_current_user)):
    return CurrentUserResponse(email=current_user.email, role=current_user.role)
