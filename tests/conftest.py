"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ella_rises.core.security import create_access_token
from ella_rises.database.database import Base, enable_sqlite_foreign_keys, get_db
from ella_rises.main import app
from ella_rises.models import (
    Donation,
    EventOccurrence,
    EventTemplate,
    Milestone,
    Participant,
    ParticipantRole,
    Registration,
    Survey,
)
from ella_rises.services.list_query_engine import RequestContext
from ella_rises.services.survey_scoring import apply_scores

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_participant(db):
    counter = {"n": 0}

    def _make(first_name="Pat", last_name="Doe", role=ParticipantRole.PARTICIPANT, visitor=False, **fields):
        counter["n"] += 1
        fields.setdefault("email", f"person{counter['n']}@example.org")
        fields.setdefault("hashed_password", None if visitor else "not-a-real-hash")
        participant = Participant(first_name=first_name, last_name=last_name, role=role, **fields)
        db.add(participant)
        db.commit()
        db.refresh(participant)
        return participant

    return _make


@pytest.fixture
def make_donation(db):
    def _make(participant, amount, donated_on=None):
        donation = Donation(participant_id=participant.id, amount=Decimal(str(amount)), donated_on=donated_on)
        db.add(donation)
        db.commit()
        db.refresh(donation)
        return donation

    return _make


@pytest.fixture
def make_occurrence(db):
    counter = {"n": 0}

    def _make(name=None, starts_at=None, ends_at=None, capacity=None, default_capacity=None,
              registration_deadline=None, event_type="Workshop", location="Provo"):
        counter["n"] += 1
        template = db.query(EventTemplate).filter(EventTemplate.name == name).first() if name else None
        if template is None:
            template = EventTemplate(
                name=name or f"Event {counter['n']}",
                event_type=event_type,
                default_capacity=default_capacity,
            )
            db.add(template)
            db.flush()
        starts_at = starts_at or NOW + timedelta(days=counter["n"])
        occurrence = EventOccurrence(
            event_id=template.id,
            starts_at=starts_at,
            ends_at=ends_at or starts_at + timedelta(hours=2),
            location=location,
            capacity=capacity,
            registration_deadline=registration_deadline,
        )
        db.add(occurrence)
        db.commit()
        db.refresh(occurrence)
        return occurrence

    return _make


@pytest.fixture
def make_survey(db):
    def _make(participant, occurrence, scores=(4, 4, 4, 4), comments=None, submitted_at=None):
        registration = Registration(participant_id=participant.id, occurrence_id=occurrence.id,
                                    status="attended", attended=True)
        db.add(registration)
        db.flush()
        survey = Survey(registration_id=registration.id, comments=comments, submitted_at=submitted_at or NOW)
        apply_scores(survey, *scores)
        db.add(survey)
        db.commit()
        db.refresh(survey)
        return survey

    return _make


@pytest.fixture
def make_milestone(db):
    def _make(participant, title, category=None, achieved_on=None):
        milestone = Milestone(participant_id=participant.id, title=title, category=category,
                              achieved_on=achieved_on)
        db.add(milestone)
        db.commit()
        db.refresh(milestone)
        return milestone

    return _make


@pytest.fixture
def admin_context():
    return RequestContext(is_authenticated=True, is_admin=True, participant_id=None)


def context_for(participant) -> RequestContext:
    return RequestContext(is_authenticated=True, is_admin=participant.is_admin, participant_id=participant.id)


def auth_headers(participant) -> dict:
    token = create_access_token({"sub": str(participant.id), "role": participant.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(make_participant):
    return make_participant("Ada", "Admin", role=ParticipantRole.ADMIN, email="admin@example.org")


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def context_of():
    return context_for
