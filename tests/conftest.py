"""Shared test fixtures for F1 Pick'em tests."""

import os

# Must be set before config.py is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_TO_FILE", "False")

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402

from app import create_app  # noqa: E402
from app import db as _db  # noqa: E402
from app.models import Event, Prediction, User  # noqa: E402
from app.utils.scoring import sessions_for  # noqa: E402
from app.utils.seed_data import seed_drivers  # noqa: E402

PASSWORD = "password123"

OFFICIAL = ["norris", "piastri", "verstappen", "leclerc", "russell"]


# Lightweight stand-ins for the pure engines (no database needed)
def fake_event(event_id, results=None):
    return SimpleNamespace(id=event_id, results=results)


def fake_prediction(user_id, event_id, session, top5):
    return SimpleNamespace(user_id=user_id, event_id=event_id, session=session, top5=top5)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def drivers(db):
    seed_drivers()
    db.session.commit()


@pytest.fixture
def make_user(db):
    """Create a ranked user (placed last, like a new registration)."""

    def _make_user(username, is_admin=False, is_guest=False, **fields):
        user = User(
            username=username,
            email=None if is_guest else f"{username}@example.com",
            is_admin=is_admin,
            is_guest=is_guest,
            rank=0 if is_guest else User.next_rank(),
            rank_history=[],
            **fields,
        )
        if not is_guest:
            user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_event(db):
    def _make_event(event_id, is_sprint=False, results=None, status=Event.STATUS_UPCOMING, **fields):
        event = Event(
            id=event_id,
            name=fields.pop("name", f"GP {event_id}"),
            location=fields.pop("location", "Circuit"),
            is_sprint=is_sprint,
            status=status,
            session_status={session: True for session in sessions_for(is_sprint)},
            results=results,
            **fields,
        )
        db.session.add(event)
        db.session.commit()
        return event

    return _make_event


@pytest.fixture
def make_prediction(db):
    def _make_prediction(user, event, session, top5):
        prediction = Prediction(user_id=user.id, event_id=event.id, session=session, top5=top5)
        db.session.add(prediction)
        db.session.commit()
        return prediction

    return _make_prediction


@pytest.fixture
def login(client):
    def _login(user):
        response = client.post(
            "/auth/login", json={"username": user.username, "password": PASSWORD}
        )
        assert response.status_code == 200, response.get_json()
        return response

    return _login


@pytest.fixture
def admin(make_user):
    return make_user("admin", is_admin=True)
