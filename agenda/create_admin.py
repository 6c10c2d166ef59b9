"""Create or reset the calendar administrator.

Usage:
    python -m agenda.create_admin EMAIL PASSWORD
"""
import sys

from sqlalchemy.exc import SQLAlchemyError

from agenda.auth.passwords import hash_password
from agenda.database import Base, SessionLocal, engine
from agenda.models import availability, booking, calendar_settings, event  # noqa: F401
from agenda.models.user import User

MIN_PASSWORD_LENGTH = 6


def create_admin(email: str, password: str) -> User:
    normalized_email = email.strip().lower()
    if not normalized_email or "@" not in normalized_email:
        raise ValueError("A valid email address is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == normalized_email).first()
        if user is None:
            user = User(email=normalized_email, role="admin")
            db.add(user)
        user.hashed_password = hash_password(password)
        user.role = "admin"
        db.commit()
        db.refresh(user)
        return user
    finally:
        db.close()


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print(__doc__.strip(), file=sys.stderr)
        sys.exit(2)

    try:
        user = create_admin(args[0], args[1])
    except (ValueError, SQLAlchemyError) as exc:
        print(f"Could not create admin: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Admin {user.email} ready (id={user.id}).")


if __name__ == "__main__":
    main()
