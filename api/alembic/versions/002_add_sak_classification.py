"""add_sak_classification

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, Sequence[str], None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _existing_columns() -> set:
    inspector = sa.inspect(op.get_bind())
    return {column['name'] for column in inspector.get_columns('stortinget_saker')}


def upgrade() -> None:
    """Upgrade schema."""
    existing = _existing_columns()

    if 'beskrivelse' not in existing:
        op.add_column('stortinget_saker', sa.Column('beskrivelse', sa.Text(), nullable=True))
    if 'kategori' not in existing:
        op.add_column('stortinget_saker', sa.Column('kategori', sa.String(length=50), nullable=True))
        op.create_index(op.f('ix_stortinget_saker_kategori'), 'stortinget_saker', ['kategori'], unique=False)
    if 'er_viktig' not in existing:
        op.add_column('stortinget_saker', sa.Column('er_viktig', sa.Boolean(), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""
    existing = _existing_columns()

    if 'kategori' in existing:
        op.drop_index(op.f('ix_stortinget_saker_kategori'), table_name='stortinget_saker')
    for column in ('er_viktig', 'kategori', 'beskrivelse'):
        if column in existing:
            op.drop_column('stortinget_saker', column)
