"""Initial database schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create venues table
    op.create_table('venues',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('location', sa.String(length=200), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('working_start_time', sa.Time(), nullable=False),
        sa.Column('working_end_time', sa.Time(), nullable=False),
        sa.Column('buffer_time_minutes', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('capacity > 0', name='ck_venue_capacity_positive'),
        sa.CheckConstraint('buffer_time_minutes >= 0', name='ck_venue_buffer_non_negative'),
        sa.CheckConstraint('working_start_time < working_end_time', name='ck_venue_working_hours_order'),
        sa.CheckConstraint('length(name) > 0', name='ck_venue_name_not_empty'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_venues_name'), 'venues', ['name'], unique=False)

    # Create teams table
    op.create_table('teams',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_teams_name'), 'teams', ['name'], unique=True)

    # Create venue_blackouts table
    op.create_table('venue_blackouts',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('venue_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('start_date_time', sa.DateTime(), nullable=False),
        sa.Column('end_date_time', sa.DateTime(), nullable=False),
        sa.Column('reason', sa.String(length=200), nullable=False),
        sa.Column('created_by', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('start_date_time < end_date_time', name='ck_blackout_window_order'),
        sa.CheckConstraint('length(reason) > 0', name='ck_blackout_reason_not_empty'),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_venue_blackouts_venue_id'), 'venue_blackouts', ['venue_id'], unique=False)
    op.create_index(op.f('ix_venue_blackouts_start_date_time'), 'venue_blackouts', ['start_date_time'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('venue_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('team_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('requester_id', sa.String(length=128), nullable=False),
        sa.Column('approver_id', sa.String(length=128), nullable=True),
        sa.Column('start_date_time', sa.DateTime(), nullable=False),
        sa.Column('end_date_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('participant_count', sa.Integer(), nullable=True),
        sa.Column('purpose', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('special_requirements', sa.Text(), nullable=True),
        sa.Column('approval_notes', sa.Text(), nullable=True),
        sa.Column('denial_reason', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('is_admin_booking', sa.Boolean(), nullable=False),
        sa.Column('overridden_booking_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('start_date_time < end_date_time', name='ck_booking_window_order'),
        sa.CheckConstraint(
            'participant_count IS NULL OR participant_count > 0',
            name='ck_booking_participant_count_positive'
        ),
        sa.CheckConstraint('length(requester_id) > 0', name='ck_booking_requester_not_empty'),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id']),
        sa.ForeignKeyConstraint(['overridden_booking_id'], ['bookings.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_venue_id'), 'bookings', ['venue_id'], unique=False)
    op.create_index(op.f('ix_bookings_team_id'), 'bookings', ['team_id'], unique=False)
    op.create_index(op.f('ix_bookings_requester_id'), 'bookings', ['requester_id'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(
        'ix_bookings_venue_window', 'bookings', ['venue_id', 'start_date_time', 'end_date_time'], unique=False
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('bookings')
    op.drop_table('venue_blackouts')
    op.drop_table('teams')
    op.drop_table('venues')
