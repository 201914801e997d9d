"""Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

Creates users, groups, group memberships, availability requests and
responses, events and event assignments.

Group-scoped rows cascade when their group is deleted. created_by_id
columns do not cascade: attribution is reassigned before a user is
soft-deleted, and users are never hard-deleted while referenced.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid_column() -> sa.Column:
    return sa.Column(
        'uuid',
        postgresql.UUID(as_uuid=True).with_variant(sa.LargeBinary(16), 'sqlite'),
        nullable=False
    )


def _json_type():
    return postgresql.JSONB().with_variant(sa.JSON(), 'sqlite')


group_role = sa.Enum('admin', 'member', name='group_role', create_constraint=True)
availability_status = sa.Enum('open', 'closed', name='availability_status', create_constraint=True)
event_type = sa.Enum('rehearsal', 'show', 'other', name='event_type', create_constraint=True)
assignment_status = sa.Enum(
    'pending', 'confirmed', 'declined', name='assignment_status', create_constraint=True
)


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('timezone', sa.String(length=100), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_uuid', 'users', ['uuid'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'])

    op.create_table(
        'groups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('invite_code', sa.String(length=8), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        sa.Column('members_can_create_requests', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('members_can_create_events', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], name='fk_groups_created_by_id'),
    )
    op.create_index('ix_groups_uuid', 'groups', ['uuid'], unique=True)
    op.create_index('ix_groups_invite_code', 'groups', ['invite_code'], unique=True)
    op.create_index('ix_groups_created_by_id', 'groups', ['created_by_id'])

    op.create_table(
        'group_memberships',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', group_role, nullable=False, server_default='member'),
        sa.Column('joined_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['group_id'], ['groups.id'],
            name='fk_group_memberships_group_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_group_memberships_user_id', ondelete='CASCADE'
        ),
        sa.UniqueConstraint('group_id', 'user_id', name='uq_group_memberships_group_user'),
    )
    op.create_index('ix_group_memberships_uuid', 'group_memberships', ['uuid'], unique=True)
    op.create_index('ix_group_memberships_group_id', 'group_memberships', ['group_id'])
    op.create_index('ix_group_memberships_user_id', 'group_memberships', ['user_id'])
    op.create_index('ix_group_memberships_role', 'group_memberships', ['role'])

    op.create_table(
        'availability_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date_range_start', sa.DateTime(), nullable=False),
        sa.Column('date_range_end', sa.DateTime(), nullable=False),
        sa.Column('requested_dates', _json_type(), nullable=False),
        sa.Column('requested_start_time', sa.String(length=5), nullable=True),
        sa.Column('requested_end_time', sa.String(length=5), nullable=True),
        sa.Column('status', availability_status, nullable=False, server_default='open'),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['group_id'], ['groups.id'],
            name='fk_availability_requests_group_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['created_by_id'], ['users.id'],
            name='fk_availability_requests_created_by_id'
        ),
    )
    op.create_index('ix_availability_requests_uuid', 'availability_requests', ['uuid'], unique=True)
    op.create_index('ix_availability_requests_group_id', 'availability_requests', ['group_id'])
    op.create_index('ix_availability_requests_created_by_id', 'availability_requests', ['created_by_id'])

    op.create_table(
        'availability_responses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('responses', _json_type(), nullable=False),
        sa.Column('responded_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['request_id'], ['availability_requests.id'],
            name='fk_availability_responses_request_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_availability_responses_user_id', ondelete='CASCADE'
        ),
        sa.UniqueConstraint('request_id', 'user_id', name='uq_availability_responses_request_user'),
    )
    op.create_index('ix_availability_responses_uuid', 'availability_responses', ['uuid'], unique=True)
    op.create_index('ix_availability_responses_request_id', 'availability_responses', ['request_id'])
    op.create_index('ix_availability_responses_user_id', 'availability_responses', ['user_id'])

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_type', event_type, nullable=False, server_default='other'),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('location', sa.String(length=500), nullable=True),
        sa.Column('call_time', sa.DateTime(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        sa.Column('created_from_request_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['group_id'], ['groups.id'],
            name='fk_events_group_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], name='fk_events_created_by_id'),
        sa.ForeignKeyConstraint(
            ['created_from_request_id'], ['availability_requests.id'],
            name='fk_events_created_from_request_id', ondelete='SET NULL'
        ),
    )
    op.create_index('ix_events_uuid', 'events', ['uuid'], unique=True)
    op.create_index('ix_events_group_start_time', 'events', ['group_id', 'start_time'])
    op.create_index('ix_events_created_by_id', 'events', ['created_by_id'])

    op.create_table(
        'event_assignments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=100), nullable=True),
        sa.Column('status', assignment_status, nullable=False, server_default='pending'),
        sa.Column('assigned_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_event_assignments_event_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_event_assignments_user_id', ondelete='CASCADE'
        ),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_event_assignments_event_user'),
    )
    op.create_index('ix_event_assignments_uuid', 'event_assignments', ['uuid'], unique=True)
    op.create_index('ix_event_assignments_event_id', 'event_assignments', ['event_id'])
    op.create_index('ix_event_assignments_user_id', 'event_assignments', ['user_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('event_assignments')
    op.drop_table('events')
    op.drop_table('availability_responses')
    op.drop_table('availability_requests')
    op.drop_table('group_memberships')
    op.drop_table('groups')
    op.drop_table('users')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum_type in (assignment_status, event_type, availability_status, group_role):
            enum_type.drop(bind, checkfirst=True)
