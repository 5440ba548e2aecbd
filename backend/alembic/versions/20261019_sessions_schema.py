"""
Sessions Schema - Create profiles and sessions tables

This migration creates:
1. profiles - Users that host or join sessions (keyed by provider id)
2. sessions - Durable session records paired with a Stream call + channel

Revision ID: 20261019_sessions_schema
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261019_sessions_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================
    # CREATE PROFILES TABLE
    # ============================================
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('provider_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('profile_image', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_provider_id', 'profiles', ['provider_id'], unique=True)
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)

    # ============================================
    # CREATE SESSIONS TABLE
    # ============================================
    op.create_table(
        'sessions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('problem', sa.String(length=255), nullable=False),
        sa.Column('difficulty', sa.String(length=50), nullable=False),
        sa.Column('call_id', sa.String(length=100), nullable=False),
        sa.Column('host_id', sa.String(length=36), nullable=False),
        sa.Column('participant_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['host_id'], ['profiles.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['participant_id'], ['profiles.id'], ondelete='RESTRICT'),
        sa.CheckConstraint("status IN ('active', 'completed')", name='ck_sessions_status'),
        sa.CheckConstraint("participant_id IS NULL OR participant_id != host_id", name='ck_sessions_distinct_roles'),
    )
    op.create_index('ix_sessions_call_id', 'sessions', ['call_id'], unique=True)
    op.create_index('ix_sessions_host_id', 'sessions', ['host_id'])
    op.create_index('ix_sessions_participant_id', 'sessions', ['participant_id'])
    op.create_index('ix_sessions_status', 'sessions', ['status'])
    op.create_index('idx_sessions_status_created', 'sessions', ['status', 'created_at'])


def downgrade():
    op.drop_table('sessions')
    op.drop_table('profiles')
