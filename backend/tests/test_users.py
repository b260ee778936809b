from sqlalchemy.exc import IntegrityError

from promptdesk.db.models import User
from promptdesk.services.users import get_or_create_user


def test_first_sight_registers_user(db):
    user = get_or_create_user(db, {"sub": "new-sub", "email": "new@example.com", "name": "New"})

    assert isinstance(user.id, int)
    assert user.email == "new@example.com"
    assert db.query(User).count() == 1


def test_known_subject_is_reused(db, user):
    again = get_or_create_user(db, {"sub": user.subject, "email": "changed@example.com"})

    assert again.id == user.id
    assert db.query(User).count() == 1


def test_email_is_used_when_subject_missing(db):
    user = get_or_create_user(db, {"email": "only@example.com"})
    assert user.subject == "only@example.com"


def test_concurrent_registration_reuses_the_winning_row(db, session_factory, monkeypatch):
    real_commit = db.commit

    def racing_commit():
        monkeypatch.setattr(db, "commit", real_commit)
        other = session_factory()
        try:
            other.add(User(subject="race-sub", email="first@example.com"))
            other.commit()
        finally:
            other.close()
        raise IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed: users.subject"))

    monkeypatch.setattr(db, "commit", racing_commit)

    user = get_or_create_user(db, {"sub": "race-sub", "email": "second@example.com"})

    assert user.email == "first@example.com"
    assert db.query(User).filter(User.subject == "race-sub").count() == 1
