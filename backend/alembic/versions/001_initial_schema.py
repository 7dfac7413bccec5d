"""initial schema: document store and admin audit log

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Detect database type
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'

    # Choose appropriate JSON type
    json_type = sa.JSON() if is_sqlite else postgresql.JSONB(astext_type=sa.Text())

    # Choose appropriate timestamp default
    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')

    # Create documents table (collection/key document store)
    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('collection', sa.String(length=100), nullable=False),
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('data', sa.LargeBinary(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('collection', 'key', name='uq_documents_collection_key')
    )
    op.create_index('ix_documents_id', 'documents', ['id'])
    op.create_index('ix_documents_collection', 'documents', ['collection'])
    op.create_index('ix_documents_key', 'documents', ['key'])

    # Create admin_audit_logs table (append-only, hash chained)
    op.create_table(
        'admin_audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('log_id', sa.String(length=36), nullable=False),
        sa.Column('admin_id', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('target_collection', sa.String(length=100), nullable=False),
        sa.Column('target_id', sa.String(length=255), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.Column('metadata', json_type, nullable=True),
        sa.Column('previous_hash', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('log_id')
    )
    op.create_index('ix_admin_audit_logs_id', 'admin_audit_logs', ['id'])
    op.create_index('ix_admin_audit_logs_log_id', 'admin_audit_logs', ['log_id'])
    op.create_index('ix_admin_audit_logs_admin_id', 'admin_audit_logs', ['admin_id'])
    op.create_index('ix_admin_audit_logs_action', 'admin_audit_logs', ['action'])
    op.create_index('ix_admin_audit_logs_target_id', 'admin_audit_logs', ['target_id'])
    op.create_index('ix_admin_audit_logs_timestamp', 'admin_audit_logs', ['timestamp'])


def downgrade() -> None:
    op.drop_table('admin_audit_logs')
    op.drop_table('documents')
