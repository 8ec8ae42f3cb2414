"""add medication effective_from

Revision ID: 8c4e2f6a1b93
Revises: 3f1c9a2b7d10
Create Date: 2026-10-20 10:41:07.203915
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '8c4e2f6a1b93'
down_revision = '3f1c9a2b7d10'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('medications', schema=None) as batch_op:
        batch_op.add_column(sa.Column('effective_from', sa.DateTime(), nullable=True))


def downgrade():
    with op.batch_alter_table('medications', schema=None) as batch_op:
        batch_op.drop_column('effective_from')
