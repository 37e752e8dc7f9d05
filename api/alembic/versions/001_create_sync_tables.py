"""create_sync_tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('representanter'):
        op.create_table('representanter',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('stortinget_id', sa.String(length=64), nullable=False),
        sa.Column('fornavn', sa.String(length=255), nullable=False),
        sa.Column('etternavn', sa.String(length=255), nullable=False),
        sa.Column('fodt', sa.Date(), nullable=True),
        sa.Column('kjonn', sa.String(length=20), nullable=True),
        sa.Column('parti', sa.String(length=255), nullable=True),
        sa.Column('parti_forkortelse', sa.String(length=20), nullable=True),
        sa.Column('fylke', sa.String(length=100), nullable=True),
        sa.Column('epost', sa.String(length=255), nullable=True),
        sa.Column('komite', sa.String(length=255), nullable=True),
        sa.Column('bilde_url', sa.Text(), nullable=True),
        sa.Column('er_aktiv', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_representanter_stortinget_id'), 'representanter', ['stortinget_id'], unique=True)
        op.create_index(op.f('ix_representanter_parti_forkortelse'), 'representanter', ['parti_forkortelse'], unique=False)

    if not inspector.has_table('stortinget_saker'):
        op.create_table('stortinget_saker',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('stortinget_id', sa.String(length=64), nullable=False),
        sa.Column('tittel', sa.Text(), nullable=False),
        sa.Column('kort_tittel', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('dokumentgruppe', sa.String(length=100), nullable=True),
        sa.Column('tema', sa.String(length=255), nullable=True),
        sa.Column('komite_navn', sa.String(length=255), nullable=True),
        sa.Column('behandlet_sesjon', sa.String(length=20), nullable=True),
        sa.Column('sist_oppdatert_fra_stortinget', sa.Date(), nullable=True),
        sa.Column('er_aktiv', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_stortinget_saker_stortinget_id'), 'stortinget_saker', ['stortinget_id'], unique=True)
        op.create_index(op.f('ix_stortinget_saker_status'), 'stortinget_saker', ['status'], unique=False)

    if not inspector.has_table('system_settings'):
        op.create_table('system_settings',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('key')
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ('system_settings', 'stortinget_saker', 'representanter'):
        if inspector.has_table(table):
            op.drop_table(table)
