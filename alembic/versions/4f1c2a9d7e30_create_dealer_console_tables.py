"""create_dealer_console_tables

Revision ID: 4f1c2a9d7e30
Revises: 
Create Date: 2026-10-17 09:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4f1c2a9d7e30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

json_type = sa.Text().with_variant(postgresql.JSONB(), 'postgresql')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'dealers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('identity_user_id', sa.String(100), nullable=True, unique=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(320), nullable=False, unique=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='dealer'),
        sa.Column('metadata', json_type, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_dealers_email', 'dealers', ['email'])

    op.create_table(
        'join_submissions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('dealership_name', sa.String(200), nullable=False),
        sa.Column('dealership_type', sa.String(50), nullable=True),
        sa.Column('number_of_vehicles', sa.Integer(), nullable=True),
        sa.Column('inquiry_type', sa.String(50), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('preferred_contact', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('assigned_to', sa.String(36), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_join_submissions_status', 'join_submissions', ['status'])

    op.create_table(
        'store_config',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('dealer_id', sa.String(36), sa.ForeignKey('dealers.id'), nullable=False, unique=True),
        sa.Column('join_submission_id', sa.String(36), sa.ForeignKey('join_submissions.id'), nullable=True),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('store_name', sa.String(200), nullable=True),
        sa.Column('store_type', sa.String(50), nullable=True),
        sa.Column('advertisement_id', sa.Text(), nullable=True),
        sa.Column('additional_advertisement_ids', json_type, nullable=True),
        sa.Column('primary_advertisement_id', sa.String(100), nullable=True),
        sa.Column('advertisement_ids', json_type, nullable=True),
        sa.Column('integration_id', sa.String(100), nullable=True),
        sa.Column('company_name', sa.String(200), nullable=True),
        sa.Column('company_logo_url', sa.Text(), nullable=True),
        sa.Column('invitation_status', sa.String(20), nullable=False, server_default='none'),
        sa.Column('invitation_id', sa.String(100), nullable=True),
        sa.Column('assigned_by', sa.String(36), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_store_config_join_submission_id', 'store_config', ['join_submission_id'])

    op.create_table(
        'dealer_logos',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('dealer_id', sa.String(36), sa.ForeignKey('dealers.id'), nullable=False),
        sa.Column('logo_public_url', sa.Text(), nullable=False),
        sa.Column('logo_file_name', sa.String(255), nullable=True),
        sa.Column('logo_file_size', sa.Integer(), nullable=True),
        sa.Column('logo_mime_type', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('assigned_by', sa.String(36), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_dealer_logos_dealer_active', 'dealer_logos', ['dealer_id', 'is_active'])

    op.create_table(
        'stock_vehicles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('stock_id', sa.String(100), nullable=False, unique=True),
        sa.Column('dealer_id', sa.String(36), sa.ForeignKey('dealers.id'), nullable=True),
        sa.Column('advertiser_id', sa.String(100), nullable=False),
        sa.Column('lifecycle_state', sa.String(20), nullable=False, server_default='FORECOURT'),
        sa.Column('make', sa.String(100), nullable=True),
        sa.Column('model', sa.String(100), nullable=True),
        sa.Column('derivative', sa.String(200), nullable=True),
        sa.Column('body_type', sa.String(50), nullable=True),
        sa.Column('fuel_type', sa.String(50), nullable=True),
        sa.Column('odometer_reading_miles', sa.Integer(), nullable=True),
        sa.Column('registration', sa.String(20), nullable=True),
        sa.Column('year_of_manufacture', sa.Integer(), nullable=True),
        sa.Column('forecourt_price_gbp', sa.Numeric(12, 2), nullable=True),
        sa.Column('total_price_gbp', sa.Numeric(12, 2), nullable=True),
        sa.Column('advertiser_data', json_type, nullable=True),
        sa.Column('vehicle_data', json_type, nullable=True),
        sa.Column('adverts_data', json_type, nullable=True),
        sa.Column('media_data', json_type, nullable=True),
        sa.Column('features_data', json_type, nullable=True),
        *_timestamps(),
    )
    op.create_index(
        'ix_stock_vehicles_advertiser_state', 'stock_vehicles', ['advertiser_id', 'lifecycle_state']
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_stock_vehicles_advertiser_state', table_name='stock_vehicles')
    op.drop_table('stock_vehicles')
    op.drop_index('ix_dealer_logos_dealer_active', table_name='dealer_logos')
    op.drop_table('dealer_logos')
    op.drop_index('ix_store_config_join_submission_id', table_name='store_config')
    op.drop_table('store_config')
    op.drop_index('ix_join_submissions_status', table_name='join_submissions')
    op.drop_table('join_submissions')
    op.drop_index('ix_dealers_email', table_name='dealers')
    op.drop_table('dealers')
