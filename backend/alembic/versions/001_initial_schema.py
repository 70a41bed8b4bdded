"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-09-28 10:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table('users',
    sa.Column('id', sa.String(36), nullable=False),
    sa.Column('username', sa.String(100), nullable=False),
    sa.Column('full_name', sa.String(255), nullable=True),
    sa.Column('email', sa.String(255), nullable=True),
    sa.Column('hashed_password', sa.String(255), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    # Activities
    op.create_table('activities',
    sa.Column('id', sa.String(36), nullable=False),
    sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
    sa.Column('name', sa.String(255), nullable=False),
    sa.Column('tracked_duration', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('last_completed_date', sa.Date(), nullable=True),
    sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_activities_user_archived', 'activities', ['user_id', 'archived_at'])

    # Tasks
    op.create_table('tasks',
    sa.Column('id', sa.String(36), nullable=False),
    sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
    sa.Column('activity_id', sa.String(36), sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
    sa.Column('name', sa.String(255), nullable=False),
    sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_tasks_activity_archived', 'tasks', ['activity_id', 'archived_at'])

    # Tags
    op.create_table('tags',
    sa.Column('id', sa.String(36), nullable=False),
    sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
    sa.Column('name', sa.String(50), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_tags_user_name', 'tags', ['user_id', 'name'])

    # Time entries
    op.create_table('time_entries',
    sa.Column('id', sa.String(36), nullable=False),
    sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
    sa.Column('activity_id', sa.String(36), sa.ForeignKey('activities.id', ondelete='CASCADE'), nullable=False),
    sa.Column('task_id', sa.String(36), sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
    sa.Column('description', sa.String(500), nullable=True),
    sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('stopped_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('rating', sa.Integer(), nullable=True),
    sa.Column('comment', sa.Text(), nullable=True),
    sa.Column('distraction_count', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_time_entries_user_date', 'time_entries', ['user_id', 'started_at'])
    op.create_index('idx_time_entries_activity_date', 'time_entries', ['activity_id', 'started_at'])
    # One running timer per user
    op.create_index(
        'uq_time_entries_one_active_per_user',
        'time_entries',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text('stopped_at IS NULL'),
        sqlite_where=sa.text('stopped_at IS NULL'),
    )

    # Time entry <-> tag association
    op.create_table('time_entry_tags',
    sa.Column('time_entry_id', sa.String(36), sa.ForeignKey('time_entries.id', ondelete='CASCADE'), nullable=False),
    sa.Column('tag_id', sa.String(36), sa.ForeignKey('tags.id', ondelete='CASCADE'), nullable=False),
    sa.PrimaryKeyConstraint('time_entry_id', 'tag_id')
    )
    op.create_index('idx_time_entry_tags_tag', 'time_entry_tags', ['tag_id'])

    # Heatmap counts
    op.create_table('daily_time_entry_counts',
    sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
    sa.Column('day', sa.Date(), nullable=False),
    sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    sa.PrimaryKeyConstraint('user_id', 'day', name='pk_daily_time_entry_counts')
    )


def downgrade() -> None:
    op.drop_table('daily_time_entry_counts')
    op.drop_index('idx_time_entry_tags_tag', table_name='time_entry_tags')
    op.drop_table('time_entry_tags')
    op.drop_index('uq_time_entries_one_active_per_user', table_name='time_entries')
    op.drop_index('idx_time_entries_activity_date', table_name='time_entries')
    op.drop_index('idx_time_entries_user_date', table_name='time_entries')
    op.drop_table('time_entries')
    op.drop_index('idx_tags_user_name', table_name='tags')
    op.drop_table('tags')
    op.drop_index('idx_tasks_activity_archived', table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('idx_activities_user_archived', table_name='activities')
    op.drop_table('activities')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
