"""
Pytest fixtures for BeanLink sync backend tests.

Provides an in-memory database, a per-test table wipe and a test client.
"""

import pytest
from beanlink import create_app
from beanlink.extensions import db


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SYNC_CONFLICT_RETRIES': 1,
        'SYNC_MAX_BATCH_SIZE': 50,
        'REGISTRATION_DEFAULT_EDIT_PASSWORD': '4321',
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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def count_rows(db_session):
    """Count persisted rows directly, bypassing the service layer."""
    def _count(model, **filters) -> int:
        return db_session.query(model).filter_by(**filters).count()
    return _count
