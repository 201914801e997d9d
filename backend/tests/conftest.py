"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite with foreign keys enforced)
- Sample data factories for users, groups, memberships and content
"""

import os
import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['CALLTIME_DB_URL'] = 'sqlite:///:memory:'

from backend.src.models import (
    Base,
    User,
    Group,
    GroupMembership,
    GroupRole,
    AvailabilityRequest,
    AvailabilityResponse,
    Event,
    EventAssignment,
    EventType,
)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    from sqlalchemy import event

    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Cascades depend on this; it must be set for each connection
    def _fk_pragma_on_connect(dbapi_con, con_record):
        dbapi_con.execute('pragma foreign_keys=ON')

    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Sample Data Factories
# ============================================================================

BASE_TIME = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def sample_user(test_db_session):
    """Factory for creating sample User models in the database."""
    counter = {'n': 0}

    def _create(name=None, email=None, deleted_at=None):
        counter['n'] += 1
        n = counter['n']
        user = User(
            name=name or f'User {n}',
            email=email or f'user{n}@example.com',
            deleted_at=deleted_at,
        )
        test_db_session.add(user)
        test_db_session.commit()
        test_db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def sample_group(test_db_session):
    """
    Factory for creating sample Group models.

    The creator becomes the first admin unless with_admin=False.
    """
    counter = {'n': 0}

    def _create(creator, name=None, with_admin=True):
        counter['n'] += 1
        n = counter['n']
        group = Group(
            name=name or f'Group {n}',
            invite_code=f'TEST{n:04d}',
            created_by_id=creator.id,
        )
        test_db_session.add(group)
        test_db_session.flush()
        if with_admin:
            test_db_session.add(GroupMembership(
                group_id=group.id,
                user_id=creator.id,
                role=GroupRole.ADMIN,
                joined_at=BASE_TIME,
            ))
        test_db_session.commit()
        test_db_session.refresh(group)
        return group
    return _create


@pytest.fixture
def sample_membership(test_db_session):
    """
    Factory for adding a user to a group.

    joined_at defaults to a strictly increasing time so join order is
    deterministic.
    """
    counter = {'n': 0}

    def _create(group, user, role=GroupRole.MEMBER, joined_at=None):
        counter['n'] += 1
        membership = GroupMembership(
            group_id=group.id,
            user_id=user.id,
            role=role,
            joined_at=joined_at or BASE_TIME + timedelta(minutes=counter['n']),
        )
        test_db_session.add(membership)
        test_db_session.commit()
        test_db_session.refresh(membership)
        return membership
    return _create


@pytest.fixture
def sample_event(test_db_session):
    """Factory for creating sample Event models."""
    def _create(group, creator, title='Rehearsal', request=None):
        event = Event(
            group_id=group.id,
            title=title,
            event_type=EventType.REHEARSAL,
            start_time=BASE_TIME + timedelta(days=7),
            end_time=BASE_TIME + timedelta(days=7, hours=2),
            created_by_id=creator.id,
            created_from_request_id=request.id if request else None,
        )
        test_db_session.add(event)
        test_db_session.commit()
        test_db_session.refresh(event)
        return event
    return _create


@pytest.fixture
def sample_request(test_db_session):
    """Factory for creating sample AvailabilityRequest models."""
    def _create(group, creator, title='Which nights work?'):
        request = AvailabilityRequest(
            group_id=group.id,
            title=title,
            date_range_start=BASE_TIME,
            date_range_end=BASE_TIME + timedelta(days=14),
            requested_dates=['2026-03-05', '2026-03-06'],
            created_by_id=creator.id,
        )
        test_db_session.add(request)
        test_db_session.commit()
        test_db_session.refresh(request)
        return request
    return _create


@pytest.fixture
def sample_response(test_db_session):
    """Factory for creating sample AvailabilityResponse models."""
    def _create(request, user):
        response = AvailabilityResponse(
            request_id=request.id,
            user_id=user.id,
            responses={'2026-03-05': 'available', '2026-03-06': 'maybe'},
        )
        test_db_session.add(response)
        test_db_session.commit()
        test_db_session.refresh(response)
        return response
    return _create


@pytest.fixture
def sample_assignment(test_db_session):
    """Factory for creating sample EventAssignment models."""
    def _create(event, user, role='Stage manager'):
        assignment = EventAssignment(
            event_id=event.id,
            user_id=user.id,
            role=role,
        )
        test_db_session.add(assignment)
        test_db_session.commit()
        test_db_session.refresh(assignment)
        return assignment
    return _create
