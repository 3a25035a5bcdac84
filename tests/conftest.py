import os

# Point settings at SQLite before the app modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite:///./seating_test.db")

from datetime import date, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from seating.db.base import Base
from seating.db.session import get_db, make_engine
from seating.main import app
from seating.models.showtime import Showtime
from seating.utils.seat_map import generate_layout, layout_config_for

ROWS = ["A", "B", "C", "D", "E", "F", "G", "H", "J", "K"]


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite file per test; a file (not :memory:) so threads share it."""
    engine = make_engine(f"sqlite:///{tmp_path / 'seating.db'}")
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


def make_showtime(db, payment_enabled=True, **overrides):
    fields = dict(
        movie_title="Interstellar",
        theater_name="Light House Cinemas",
        screen="2",
        show_date=date(2026, 11, 1),
        show_time=time(19, 30),
        payment_enabled=payment_enabled,
        row_labels=ROWS,
        seats_per_row=12,
        lower_tier_rows=2,
        lower_tier_price=Decimal("70"),
        upper_tier_price=Decimal("150"),
    )
    fields.update(overrides)
    showtime = Showtime(**fields)
    db.add(showtime)
    db.commit()
    db.refresh(showtime)
    return showtime


@pytest.fixture
def showtime(db):
    return make_showtime(db)


@pytest.fixture
def layout(showtime):
    return generate_layout(layout_config_for(showtime))


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
