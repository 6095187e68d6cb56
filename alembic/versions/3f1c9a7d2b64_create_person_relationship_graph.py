"""create_person_relationship_graph

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-10-18 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b64'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the tenant-isolated person graph.

    Creates:
    - tenants table (agencies)
    - persons table, unique per (tenant, external_source, external_id)
    - relationships table, unique per (tenant, unordered person pair)
    """
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'persons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('middle_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('is_deceased', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assigned_worker_id', sa.String(length=255), nullable=True),
        sa.Column('source', sa.String(length=13), nullable=False),
        sa.Column('external_source', sa.String(length=100), nullable=True),
        sa.Column('external_id', sa.String(length=255), nullable=True),
        sa.Column('retired_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'external_source', 'external_id', name='uq_person_external')
    )
    op.create_index('ix_persons_tenant_id', 'persons', ['tenant_id'])

    op.create_table(
        'relationships',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('source_person_id', sa.Integer(), nullable=False),
        sa.Column('destination_person_id', sa.Integer(), nullable=False),
        sa.Column('pair_low_id', sa.Integer(), nullable=False),
        sa.Column('pair_high_id', sa.Integer(), nullable=False),
        sa.Column('relationship_type', sa.String(length=100), nullable=True),
        sa.Column('is_restricted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('contact_log_ids', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.ForeignKeyConstraint(['source_person_id'], ['persons.id']),
        sa.ForeignKeyConstraint(['destination_person_id'], ['persons.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'pair_low_id', 'pair_high_id', name='uq_relationship_pair')
    )
    op.create_index('ix_relationships_tenant_id', 'relationships', ['tenant_id'])
    op.create_index('ix_relationships_source_person_id', 'relationships', ['source_person_id'])
    op.create_index(
        'ix_relationships_destination_person_id', 'relationships', ['destination_person_id']
    )
    op.create_index('ix_relationships_pair', 'relationships', ['pair_low_id', 'pair_high_id'])


def downgrade() -> None:
    """Drop the person graph tables."""
    op.drop_index('ix_relationships_pair', table_name='relationships')
    op.drop_index('ix_relationships_destination_person_id', table_name='relationships')
    op.drop_index('ix_relationships_source_person_id', table_name='relationships')
    op.drop_index('ix_relationships_tenant_id', table_name='relationships')
    op.drop_table('relationships')
    op.drop_index('ix_persons_tenant_id', table_name='persons')
    op.drop_table('persons')
    op.drop_table('tenants')
