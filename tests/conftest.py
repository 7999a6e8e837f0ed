"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite database. Services are built with a
fixed clock so time-window rules are deterministic.
"""

import os

# Must be set before cinema.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_DATABASE", "false")

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cinema.db.base import Base
from cinema.db.session import get_db, get_session_factory, serialize_sqlite_writers
from cinema.db.unit_of_work import UnitOfWork
from cinema.main import app
from cinema.models import Movie, Room, Screening, Theater, Ticket, User
from cinema.models.promo_code import PromoCode
from cinema.services.box_office import BoxOffice

NOW = datetime(2030, 6, 1, 10, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock tests can move forward explicitly."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Session used to seed and inspect data. Seeds are always committed."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def box_office(session_factory, clock) -> BoxOffice:
    return BoxOffice(session_factory, clock=clock)


# ---------------------------------------------------------------------------
# File-backed database shared by several threads
# ---------------------------------------------------------------------------


@pytest.fixture
def shared_session_factory(tmp_path):
    engine = serialize_sqlite_writers(create_engine(
        f"sqlite:///{tmp_path / 'cinema.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    ))
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def shared_box_office(shared_session_factory, clock) -> BoxOffice:
    return BoxOffice(shared_session_factory, clock=clock)


@pytest.fixture
def seed(shared_session_factory):
    """Commit objects to the shared database and return them loaded and detached."""

    def _seed(*objects):
        with shared_session_factory() as session:
            session.add_all(objects)
            session.commit()
            for obj in objects:
                session.refresh(obj)
        return objects

    return _seed


def run_concurrently(*calls):
    """Start every call on its own thread at the same moment; return their results in order."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        results[index] = call()

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results


@pytest.fixture
def lock_log(monkeypatch):
    """Records every row lock a unit of work takes, in order."""
    log = []
    lock_room = UnitOfWork.lock_room
    lock_screening = UnitOfWork.lock_screening

    def recording_lock_room(self, room_id):
        log.append(("room", room_id))
        return lock_room(self, room_id)

    def recording_lock_screening(self, screening_id):
        log.append(("screening", screening_id))
        return lock_screening(self, screening_id)

    monkeypatch.setattr(UnitOfWork, "lock_room", recording_lock_room)
    monkeypatch.setattr(UnitOfWork, "lock_screening", recording_lock_screening)
    return log


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: str = "user") -> User:
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.com",
            password_hash="not-a-real-hash",
            full_name=f"User {counter['n']}",
            role=role,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_movie(db):
    def _make(duration_minutes: int = 120, title: str = "Arrival") -> Movie:
        movie = Movie(title=title, duration_minutes=duration_minutes)
        db.add(movie)
        db.commit()
        return movie

    return _make


@pytest.fixture
def make_room(db):
    def _make(rows: int = 10, seats_per_row: int = 15, is_active: bool = True) -> Room:
        theater = Theater(name="Downtown")
        room = Room(
            theater=theater,
            name="Screen 1",
            room_number=1,
            rows=rows,
            seats_per_row=seats_per_row,
            is_active=is_active,
        )
        db.add_all([theater, room])
        db.commit()
        return room

    return _make


@pytest.fixture
def make_screening(db):
    def _make(movie: Movie, room: Room, show_time: datetime, price: Decimal = Decimal("12.00")) -> Screening:
        screening = Screening(
            movie_id=movie.id,
            room_id=room.id,
            show_time=show_time,
            price=price,
            is_active=True,
        )
        db.add(screening)
        db.commit()
        return screening

    return _make


@pytest.fixture
def make_promo(db):
    def _make(code: str = "HALF", **fields) -> PromoCode:
        values = {"discount_percent": Decimal("50"), "current_uses": 0, "is_active": True}
        values.update(fields)
        promo = PromoCode(code=code, **values)
        db.add(promo)
        db.commit()
        return promo

    return _make


@pytest.fixture
def active_tickets(db):
    """Active tickets currently stored for a screening, read fresh."""

    def _count(screening_id):
        db.expire_all()
        return db.query(Ticket).filter(
            Ticket.screening_id == screening_id,
            Ticket.status == "Active",
        ).all()

    return _count


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    # Skip the lifespan hook: the test engine already has its tables
    yield TestClient(app)
    app.dependency_overrides.clear()
