"""create questions and participant_sessions

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_option_index', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'participant_sessions',
        sa.Column('session_id', sa.String(length=128), nullable=False),
        sa.Column('display_name', sa.String(length=64), nullable=True),
        sa.Column('assigned_epoch', sa.BigInteger(), nullable=True),
        sa.Column('assigned_question_ids', sa.JSON(), nullable=False),
        sa.Column('answered_question_ids', sa.JSON(), nullable=False),
        sa.Column('cumulative_score', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('session_id'),
    )
    # Leaderboard ordering
    op.create_index(
        'idx_participant_score',
        'participant_sessions',
        [sa.text('cumulative_score DESC'), 'session_id'],
    )


def downgrade() -> None:
    op.drop_index('idx_participant_score', table_name='participant_sessions')
    op.drop_table('participant_sessions')
    op.drop_table('questions')
