"""initial schema

Revision ID: 20261019120000
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog, progression, quest, todo and feedback tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_name'), 'users', ['name'], unique=True)

    op.create_table(
        'fields',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('unlock_global_level', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'modules',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('field_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('unlock_field_level', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['field_id'], ['fields.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_modules_field_id'), 'modules', ['field_id'], unique=False)
    op.create_table(
        'sub_modules',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('module_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unlock_field_level', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['module_id'], ['modules.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sub_modules_module_id'), 'sub_modules', ['module_id'], unique=False)
    op.create_table(
        'module_quest_templates',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('sub_module_id', sa.String(length=36), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('type', sa.String(length=32), nullable=False, server_default='challenge'),
        sa.Column('xp_reward', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('is_mandatory', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['sub_module_id'], ['sub_modules.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_module_quest_templates_sub_module_id'), 'module_quest_templates',
                    ['sub_module_id'], unique=False)

    op.create_table(
        'user_levels',
        sa.Column('level', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('xp_required', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('level'),
    )
    op.create_table(
        'user_field_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('field_id', sa.String(length=36), nullable=False),
        sa.Column('field_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('field_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unlocked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['field_id'], ['fields.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'field_id', name='uq_user_field'),
    )
    op.create_index(op.f('ix_user_field_progress_id'), 'user_field_progress', ['id'], unique=False)
    op.create_index(op.f('ix_user_field_progress_user_id'), 'user_field_progress', ['user_id'], unique=False)
    op.create_table(
        'user_global_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('global_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('global_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('league', sa.String(length=16), nullable=False, server_default='bronze'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_global_progress_id'), 'user_global_progress', ['id'], unique=False)
    op.create_index(op.f('ix_user_global_progress_user_id'), 'user_global_progress', ['user_id'], unique=True)
    op.create_index(op.f('ix_user_global_progress_global_xp'), 'user_global_progress', ['global_xp'], unique=False)
    op.create_index(op.f('ix_user_global_progress_league'), 'user_global_progress', ['league'], unique=False)
    op.create_table(
        'user_quest_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('quest_id', sa.String(length=36), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('xp_awarded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'quest_id', name='uq_user_quest'),
    )
    op.create_index(op.f('ix_user_quest_progress_id'), 'user_quest_progress', ['id'], unique=False)
    op.create_index(op.f('ix_user_quest_progress_user_id'), 'user_quest_progress', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_quest_progress_quest_id'), 'user_quest_progress', ['quest_id'], unique=False)
    op.create_table(
        'user_survey_responses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('field_id', sa.String(length=36), nullable=False),
        sa.Column('skill', sa.String(length=255), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['field_id'], ['fields.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'field_id', 'skill', name='uq_user_survey_skill'),
    )
    op.create_index(op.f('ix_user_survey_responses_id'), 'user_survey_responses', ['id'], unique=False)
    op.create_index(op.f('ix_user_survey_responses_user_id'), 'user_survey_responses', ['user_id'], unique=False)

    op.create_table(
        'quests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('xp_reward', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('type', sa.String(length=32), nullable=False, server_default='challenge'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='active'),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('penalty_for_quest_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_quests_user_id'), 'quests', ['user_id'], unique=False)
    op.create_index(op.f('ix_quests_status'), 'quests', ['status'], unique=False)

    op.create_table(
        'todos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('color', sa.String(length=32), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_todos_id'), 'todos', ['id'], unique=False)
    op.create_index(op.f('ix_todos_user_id'), 'todos', ['user_id'], unique=False)

    op.create_table(
        'writing_feedback',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_writing_feedback_id'), 'writing_feedback', ['id'], unique=False)
    op.create_index(op.f('ix_writing_feedback_user_id'), 'writing_feedback', ['user_id'], unique=False)


def downgrade() -> None:
    """Drop everything created in upgrade()."""
    for table in (
        'writing_feedback', 'todos', 'quests', 'user_survey_responses',
        'user_quest_progress', 'user_global_progress', 'user_field_progress',
        'user_levels', 'module_quest_templates', 'sub_modules', 'modules',
        'fields', 'users',
    ):
        op.drop_table(table)
