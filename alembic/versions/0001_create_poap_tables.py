"""Create organizers, api_keys, campaigns, claims and legacy_mints tables

Revision ID: 0001
Revises: 
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create organizers table
    op.create_table('organizers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('company', sa.String(length=200), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('tier', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_organizers_email'), 'organizers', ['email'], unique=True)

    # Create api_keys table
    op.create_table('api_keys',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organizer_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['organizer_id'], ['organizers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_api_keys_organizer_id'), 'api_keys', ['organizer_id'], unique=False)
    op.create_index(op.f('ix_api_keys_key'), 'api_keys', ['key'], unique=True)

    # Create campaigns table
    op.create_table('campaigns',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organizer_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.DateTime(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('image_url', sa.String(length=1000), nullable=True),
        sa.Column('external_url', sa.String(length=1000), nullable=True),
        sa.Column('secret_code', sa.String(length=100), nullable=True),
        sa.Column('max_claims', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('symbol', sa.String(length=10), nullable=False),
        sa.Column('metadata_uri', sa.String(length=1000), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['organizer_id'], ['organizers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_campaigns_organizer_id'), 'campaigns', ['organizer_id'], unique=False)
    op.create_index(op.f('ix_campaigns_is_active'), 'campaigns', ['is_active'], unique=False)

    # Create claims table
    op.create_table('claims',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('campaign_id', sa.String(length=36), nullable=False),
        sa.Column('user_public_key', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('mint_address', sa.String(length=64), nullable=True),
        sa.Column('token_account', sa.String(length=64), nullable=True),
        sa.Column('transaction_hash', sa.String(length=128), nullable=True),
        sa.Column('gas_cost', sa.BigInteger(), nullable=False),
        sa.Column('claimed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('campaign_id', 'user_public_key', name='uq_claims_campaign_user')
    )
    op.create_index(op.f('ix_claims_campaign_id'), 'claims', ['campaign_id'], unique=False)
    op.create_index(op.f('ix_claims_user_public_key'), 'claims', ['user_public_key'], unique=False)
    op.create_index(op.f('ix_claims_status'), 'claims', ['status'], unique=False)
    op.create_index(op.f('ix_claims_claimed_at'), 'claims', ['claimed_at'], unique=False)

    # Create legacy_mints table
    op.create_table('legacy_mints',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('service_id', sa.String(length=100), nullable=False),
        sa.Column('user_public_key', sa.String(length=64), nullable=False),
        sa.Column('mint_address', sa.String(length=64), nullable=True),
        sa.Column('transaction_hash', sa.String(length=128), nullable=True),
        sa.Column('gas_cost', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('service_id', 'user_public_key', name='uq_legacy_mints_service_user')
    )
    op.create_index(op.f('ix_legacy_mints_service_id'), 'legacy_mints', ['service_id'], unique=False)
    op.create_index(op.f('ix_legacy_mints_user_public_key'), 'legacy_mints', ['user_public_key'], unique=False)


def downgrade() -> None:
    op.drop_table('legacy_mints')
    op.drop_table('claims')
    op.drop_table('campaigns')
    op.drop_table('api_keys')
    op.drop_table('organizers')
