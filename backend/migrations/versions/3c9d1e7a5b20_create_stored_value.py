"""create stored_value for player progress

Revision ID: 3c9d1e7a5b20
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9d1e7a5b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'stored_value' in set(insp.get_table_names()):
        return
    op.create_table(
        'stored_value',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store', sa.String(length=32), nullable=False),
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store', 'key', name='uq_stored_value_store_key'),
    )
    with op.batch_alter_table('stored_value') as batch_op:
        batch_op.create_index('ix_stored_value_store', ['store'], unique=False)


def downgrade():
    with op.batch_alter_table('stored_value') as batch_op:
        batch_op.drop_index('ix_stored_value_store')
    op.drop_table('stored_value')
