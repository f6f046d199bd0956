"""create transfers and issued_links tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'transfers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('link_id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=True),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('content_type', sa.String(length=255), nullable=False),
        sa.Column('storage_path', sa.String(length=512), nullable=False),
        sa.Column('credential_hash', sa.String(length=255), nullable=True),
        sa.Column('manage_key_hash', sa.String(length=64), nullable=True),
        sa.Column('download_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expire_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_transfers_link_id', 'transfers', ['link_id'], unique=True)
    op.create_index('ix_transfers_owner_id', 'transfers', ['owner_id'])
    op.create_index('ix_transfers_expire_at', 'transfers', ['expire_at'])

    op.create_table(
        'issued_links',
        sa.Column('link_id', sa.String(length=64), primary_key=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade():
    op.drop_table('issued_links')
    op.drop_index('ix_transfers_expire_at', table_name='transfers')
    op.drop_index('ix_transfers_owner_id', table_name='transfers')
    op.drop_index('ix_transfers_link_id', table_name='transfers')
    op.drop_table('transfers')
