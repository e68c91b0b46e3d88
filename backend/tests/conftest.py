"""
Pytest fixtures for icebox backend tests.

Provides an in-memory database, an acting identity, seed workers/routes,
a pile factory and the test client.
"""

import pytest

from icebox import create_app
from icebox.actor import ROLE_ADMIN, ROLE_OWNER, Actor
from icebox.extensions import db
from icebox.models import InventoryLine, Route, Worker
from icebox.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEFAULT_MIN_STOCK_ALERT': 20,
        'LOG_JSON': False,
        'LOG_LEVEL': 'DEBUG',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture
def actor():
    return Actor(actor_id=1, role=ROLE_ADMIN)


@pytest.fixture
def owner():
    return Actor(actor_id=7, role=ROLE_OWNER)


@pytest.fixture
def actor_headers():
    return {"X-Actor-Id": "1", "X-Actor-Role": ROLE_ADMIN}


@pytest.fixture
def worker(db_session):
    w = Worker(name="Ana", is_active=True, current_debt_cents=0, total_sales=0)
    db_session.add(w)
    db_session.commit()
    return w


@pytest.fixture
def route(db_session):
    r = Route(name="Beach", usage_count=0)
    db_session.add(r)
    db_session.commit()
    return r


@pytest.fixture
def make_pile(db_session):
    """Factory for inventory piles committed straight to the database."""
    def _make(
        *,
        freezer_id=1,
        product_id=10,
        flavor_id=100,
        provider_id=1000,
        quantity=50,
        min_stock_alert=20,
        is_deformed=False,
        assigned_worker_id=None,
    ):
        pile = InventoryLine(
            freezer_id=freezer_id,
            product_id=product_id,
            flavor_id=flavor_id,
            provider_id=provider_id,
            quantity=quantity,
            min_stock_alert=min_stock_alert,
            is_deformed=is_deformed,
            assigned_worker_id=assigned_worker_id,
            last_updated=utcnow(),
            updated_by=1,
        )
        db_session.add(pile)
        db_session.commit()
        return pile

    return _make
