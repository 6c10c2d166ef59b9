import os
from datetime import date, datetime, time, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from agenda.auth import jwt_handler  # noqa: E402
from agenda.auth.passwords import hash_password  # noqa: E402
from agenda.database import Base  # noqa: E402
from agenda.models import availability, booking, calendar_settings, event  # noqa: E402,F401
from agenda.models.user import User  # noqa: E402

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'secret-password'


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin(db) -> User:
    user = User(email=ADMIN_EMAIL, hashed_password=hash_password(ADMIN_PASSWORD), role='admin')
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    token = jwt_handler.create_access_token(subject=admin.email, role=admin.role)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from agenda.database import get_db
    from agenda.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def open_slot() -> tuple[datetime, datetime]:
    """A default-schedule weekday slot a few days out, inside the booking window."""
    day = date.today() + timedelta(days=3)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    start = datetime.combine(day, time(10, 0))
    return start, start + timedelta(minutes=30)


@pytest.fixture
def admin_credentials(admin) -> tuple[str, str]:
    return admin.email, ADMIN_PASSWORD
