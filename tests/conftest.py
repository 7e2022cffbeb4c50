from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import skillswap.database.db as db_module
from skillswap.database.models import (
    Base,
    ClientProfile,
    FreelancerProfile,
    Project,
    User,
)
from skillswap.services.dispatcher import RecordingDispatcher

PROPOSAL = "I have shipped several marketplaces like this one and can start right away."


@dataclass
class Marketplace:
    client_user: User
    client: ClientProfile
    project: Project
    freelancer_users: list[User] = field(default_factory=list)
    freelancers: list[FreelancerProfile] = field(default_factory=list)
    outsider: User | None = None


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'skillswap_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


def seed_marketplace(session, freelancer_count: int = 3) -> Marketplace:
    client_user = User(name="Clara Client", email="clara@example.com", role="client", phone="+15550001")
    session.add(client_user)
    session.flush()
    client = ClientProfile(user_id=client_user.id, company_name="Clara Co")
    session.add(client)
    session.flush()

    freelancer_users = []
    freelancers = []
    for index in range(freelancer_count):
        user = User(
            name=f"Freelancer {index + 1}",
            email=f"freelancer{index + 1}@example.com",
            role="freelancer",
            phone=f"+1555010{index}",
        )
        session.add(user)
        session.flush()
        profile = FreelancerProfile(user_id=user.id, title="Developer", hourly_rate=50.0)
        session.add(profile)
        session.flush()
        freelancer_users.append(user)
        freelancers.append(profile)

    outsider = User(name="Otto Outsider", email="otto@example.com", role="client")
    session.add(outsider)
    session.flush()

    project = Project(
        client_id=client.id,
        title="Marketplace MVP",
        description="Build the first version of a two-sided marketplace.",
        budget=5000.0,
        status="Open",
    )
    session.add(project)
    session.commit()
    return Marketplace(
        client_user=client_user,
        client=client,
        project=project,
        freelancer_users=freelancer_users,
        freelancers=freelancers,
        outsider=outsider,
    )


@pytest.fixture
def marketplace(session):
    return seed_marketplace(session)


@pytest.fixture
def bid_payload():
    def _payload(amount: float = 1000.0, delivery_time: int = 14, proposal: str = PROPOSAL) -> dict:
        return {"amount": amount, "delivery_time": delivery_time, "proposal": proposal, "milestones": []}

    return _payload


@pytest.fixture
def contract_terms():
    start = datetime(2026, 11, 1)
    return {
        "terms": "Deliver the MVP as described in the accepted proposal.",
        "payment_terms": "50% upfront, 50% on delivery",
        "start_date": start,
        "end_date": start + timedelta(days=30),
        "deliverables": [{"title": "MVP", "description": "Working marketplace"}],
    }


@pytest.fixture
def bound_database(monkeypatch, engine, session_factory):
    """Point the app-level engine and session factory at the test database."""
    monkeypatch.setattr(db_module, "engine", engine)
    monkeypatch.setattr(db_module, "SessionLocal", session_factory)
    return session_factory
