"""add user_settings table

Revision ID: 8c3f4a6e1d20
Revises: 5b1e0c7d2a94
Create Date: 2026-10-09 18:05:37.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8c3f4a6e1d20'
down_revision: Union[str, Sequence[str], None] = '5b1e0c7d2a94'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner', sa.Text(), nullable=False),
        sa.Column('notifications_enabled', sa.Boolean(), server_default='1', nullable=False),
        sa.Column('max_price_alerts', sa.Float(), nullable=True),
        sa.Column('preferred_brands', sa.Text(), server_default='', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_user_settings_owner', 'user_settings', ['owner'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_user_settings_owner', table_name='user_settings')
    op.drop_table('user_settings')
