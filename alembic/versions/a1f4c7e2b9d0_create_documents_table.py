"""create documents table

Revision ID: a1f4c7e2b9d0
Revises:
Create Date: 2026-01-12 10:00:00.000000

Single table behind the document store: every collection (prospects,
users, transactions, invoices, budgets, calendarEvents, calendarCategories,
settings) is stored as JSON rows addressed by (collection, doc_id).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1f4c7e2b9d0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the documents table."""
    op.create_table(
        'documents',
        sa.Column('id', sa.String(length=36), nullable=False),

        # Address
        sa.Column('collection', sa.String(length=100), nullable=False),
        sa.Column('doc_id', sa.String(length=255), nullable=False),

        # Payload
        sa.Column('data', sa.JSON(), nullable=False),

        # Timestamps
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),

        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('collection', 'doc_id', name='uq_documents_collection_doc_id'),
    )

    # Index on collection for list/where scans
    op.create_index(
        op.f('ix_documents_collection'),
        'documents',
        ['collection'],
        unique=False
    )


def downgrade() -> None:
    """Drop the documents table."""
    op.drop_index(op.f('ix_documents_collection'), table_name='documents')
    op.drop_table('documents')
