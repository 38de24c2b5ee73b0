"""Create companies, partnership_inquiries and entitlement tables

Revision ID: 4e1a9c2b7d30
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4e1a9c2b7d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('website_url', sa.String(), nullable=True),
        sa.Column('contact_email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('location_country', sa.String(), nullable=True),
        sa.Column('location_city', sa.String(), nullable=True),
        sa.Column('industry', sa.JSON(), nullable=False),
        sa.Column('specialties', sa.JSON(), nullable=False),
        sa.Column('company_size', sa.String(), nullable=True, server_default='small'),
        sa.Column('established_year', sa.Integer(), nullable=True),
        sa.Column('data_source', sa.String(), nullable=False, server_default='manual'),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_companies_website_url'), 'companies', ['website_url'], unique=False)
    op.create_index(op.f('ix_companies_data_source'), 'companies', ['data_source'], unique=False)

    op.create_table(
        'partnership_inquiries',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('requester_email', sa.String(), nullable=True),
        sa.Column('company_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_partnership_inquiries_user_id'), 'partnership_inquiries', ['user_id'], unique=False)
    op.create_index(op.f('ix_partnership_inquiries_company_id'), 'partnership_inquiries', ['company_id'], unique=False)

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='basic'),
        sa.Column('granted_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_roles_user_id'), 'user_roles', ['user_id'], unique=False)

    op.create_table(
        'subscribers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('subscribed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('subscription_tier', sa.String(), nullable=True),
        sa.Column('subscription_end', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subscribers_user_id'), 'subscribers', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_subscribers_user_id'), table_name='subscribers')
    op.drop_table('subscribers')
    op.drop_index(op.f('ix_user_roles_user_id'), table_name='user_roles')
    op.drop_table('user_roles')
    op.drop_index(op.f('ix_partnership_inquiries_company_id'), table_name='partnership_inquiries')
    op.drop_index(op.f('ix_partnership_inquiries_user_id'), table_name='partnership_inquiries')
    op.drop_table('partnership_inquiries')
    op.drop_index(op.f('ix_companies_data_source'), table_name='companies')
    op.drop_index(op.f('ix_companies_website_url'), table_name='companies')
    op.drop_table('companies')
