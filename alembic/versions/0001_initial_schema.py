"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-12-02 01:30:46.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

participant_role = sa.Enum('admin', 'participant', 'donor', name='participantrole')


def upgrade() -> None:
    op.create_table(
        'participants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('role', participant_role, nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=50), nullable=True),
        sa.Column('zip_code', sa.String(length=20), nullable=True),
        sa.Column('school_or_employer', sa.String(length=255), nullable=True),
        sa.Column('field_of_interest', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_participants_id'), 'participants', ['id'])
    op.create_index(op.f('ix_participants_email'), 'participants', ['email'], unique=True)

    op.create_table(
        'event_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False, unique=True),
        sa.Column('event_type', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('recurrence_pattern', sa.String(length=100), nullable=True),
        sa.Column('default_capacity', sa.Integer(), nullable=True),
    )
    op.create_index(op.f('ix_event_templates_id'), 'event_templates', ['id'])

    op.create_table(
        'event_occurrences',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_id', sa.Integer(),
                  sa.ForeignKey('event_templates.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('registration_deadline', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('event_id', 'starts_at', name='uq_event_occurrences_event_start'),
    )
    op.create_index(op.f('ix_event_occurrences_id'), 'event_occurrences', ['id'])
    op.create_index(op.f('ix_event_occurrences_event_id'), 'event_occurrences', ['event_id'])

    op.create_table(
        'registrations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('participant_id', sa.Integer(),
                  sa.ForeignKey('participants.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False),
        sa.Column('occurrence_id', sa.Integer(),
                  sa.ForeignKey('event_occurrences.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('attended', sa.Boolean(), nullable=False),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('participant_id', 'occurrence_id', name='uq_registrations_participant_occurrence'),
    )
    op.create_index(op.f('ix_registrations_id'), 'registrations', ['id'])
    op.create_index(op.f('ix_registrations_participant_id'), 'registrations', ['participant_id'])
    op.create_index(op.f('ix_registrations_occurrence_id'), 'registrations', ['occurrence_id'])

    op.create_table(
        'surveys',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('registration_id', sa.Integer(),
                  sa.ForeignKey('registrations.id', ondelete='CASCADE', onupdate='CASCADE'),
                  nullable=False, unique=True),
        sa.Column('satisfaction_score', sa.Integer(), nullable=False),
        sa.Column('usefulness_score', sa.Integer(), nullable=False),
        sa.Column('instructor_score', sa.Integer(), nullable=False),
        sa.Column('recommendation_score', sa.Integer(), nullable=False),
        sa.Column('overall_score', sa.Numeric(4, 2), nullable=False),
        sa.Column('nps_bucket', sa.String(length=50), nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(op.f('ix_surveys_id'), 'surveys', ['id'])

    op.create_table(
        'milestones',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('participant_id', sa.Integer(),
                  sa.ForeignKey('participants.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('achieved_on', sa.Date(), nullable=True),
    )
    op.create_index(op.f('ix_milestones_id'), 'milestones', ['id'])
    op.create_index(op.f('ix_milestones_participant_id'), 'milestones', ['participant_id'])

    op.create_table(
        'donations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('participant_id', sa.Integer(),
                  sa.ForeignKey('participants.id', ondelete='RESTRICT', onupdate='CASCADE'), nullable=False),
        sa.Column('donated_on', sa.Date(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
    )
    op.create_index(op.f('ix_donations_id'), 'donations', ['id'])
    op.create_index(op.f('ix_donations_participant_id'), 'donations', ['participant_id'])


def downgrade() -> None:
    # Reverse order of creation
    op.drop_table('donations')
    op.drop_table('milestones')
    op.drop_table('surveys')
    op.drop_table('registrations')
    op.drop_table('event_occurrences')
    op.drop_table('event_templates')
    op.drop_table('participants')
    participant_role.drop(op.get_bind(), checkfirst=True)
