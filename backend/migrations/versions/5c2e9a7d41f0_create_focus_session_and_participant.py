"""create focus_session and participant tables

Revision ID: 5c2e9a7d41f0
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d41f0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'focus_session',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('focus_duration', sa.BigInteger(), nullable=False),
        sa.Column('break_duration', sa.BigInteger(), nullable=False),
        sa.Column('long_break_duration', sa.BigInteger(), nullable=False),
        sa.Column('num_focus_per_long_break', sa.Integer(), nullable=False),
        sa.Column('counter', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_ping', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('activity_state', sa.String(length=16), nullable=False, server_default='NOT_STARTED'),
        sa.Column('pomodoro_state', sa.String(length=16), nullable=False, server_default='FOCUS'),
        sa.Column('pomodoro_time', sa.BigInteger(), nullable=True),
        sa.Column('pause_delta', sa.BigInteger(), nullable=False, server_default='0'),
    )
    op.create_table(
        'participant',
        sa.Column('session_id', sa.String(length=64), sa.ForeignKey('focus_session.id'), primary_key=True),
        sa.Column('participant_id', sa.String(length=64), primary_key=True),
        sa.Column('last_ping', sa.BigInteger(), nullable=False),
    )


def downgrade():
    op.drop_table('participant')
    op.drop_table('focus_session')
