"""Initial schema: organizations, fighters, events, fights, rankings, sync log

Revision ID: 3c9e1f0a7b21
Revises:
Create Date: 2026-10-18 00:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic
revision: str = '3c9e1f0a7b21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('short_name', sa.String(length=20), nullable=False),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('name'),
        sa.UniqueConstraint('short_name'),
    )

    op.create_table(
        'fighters',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('espn_id', sa.String(length=50), nullable=True),
        sa.Column('espn_uid', sa.String(length=100), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=150), nullable=False),
        sa.Column('nickname', sa.String(length=150), nullable=True),
        sa.Column('name_key', sa.String(length=255), nullable=False),
        sa.Column('last_name_key', sa.String(length=150), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('nationality', sa.String(length=100), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('height_cm', sa.Integer(), nullable=True),
        sa.Column('reach_cm', sa.Integer(), nullable=True),
        sa.Column('weight_lbs', sa.Numeric(precision=6, scale=1), nullable=True),
        sa.Column('stance', sa.String(length=20), nullable=False),
        sa.Column('gender', sa.String(length=10), nullable=False),
        sa.Column('wins', sa.Integer(), nullable=False),
        sa.Column('losses', sa.Integer(), nullable=False),
        sa.Column('draws', sa.Integer(), nullable=False),
        sa.Column('no_contests', sa.Integer(), nullable=False),
        sa.Column('wins_by_ko', sa.Integer(), nullable=False),
        sa.Column('wins_by_sub', sa.Integer(), nullable=False),
        sa.Column('wins_by_dec', sa.Integer(), nullable=False),
        sa.Column('weight_class', sa.String(length=30), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('organization_id', 'espn_id', name='uq_fighter_org_espn_id'),
    )
    op.create_index('idx_fighters_name_key', 'fighters', ['organization_id', 'name_key'])
    op.create_index('idx_fighters_last_name_key', 'fighters', ['organization_id', 'last_name_key'])

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('espn_id', sa.String(length=50), nullable=True),
        sa.Column('espn_uid', sa.String(length=100), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=20), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=True),
        sa.Column('venue', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('organization_id', 'espn_id', name='uq_event_org_espn_id'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_event_org_name'),
    )
    op.create_index('idx_events_date', 'events', ['date'])

    op.create_table(
        'fights',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('espn_id', sa.String(length=50), nullable=True),
        sa.Column('espn_uid', sa.String(length=100), nullable=True),
        sa.Column('fighter1_id', sa.Integer(), sa.ForeignKey('fighters.id'), nullable=False),
        sa.Column('fighter2_id', sa.Integer(), sa.ForeignKey('fighters.id'), nullable=False),
        sa.Column('weight_class', sa.String(length=30), nullable=True),
        sa.Column('rounds', sa.Integer(), nullable=False),
        sa.Column('card_position', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('winner_id', sa.Integer(), sa.ForeignKey('fighters.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('espn_id'),
        sa.UniqueConstraint('event_id', 'fighter1_id', 'fighter2_id', name='uq_fight_event_pair'),
        sa.CheckConstraint('fighter1_id <> fighter2_id', name='ck_fight_distinct_fighters'),
        sa.CheckConstraint(
            'winner_id IS NULL OR winner_id = fighter1_id OR winner_id = fighter2_id',
            name='ck_fight_winner_is_participant',
        ),
    )
    op.create_index('idx_fights_event', 'fights', ['event_id'])
    op.create_index('idx_fights_fighter1', 'fights', ['fighter1_id'])
    op.create_index('idx_fights_fighter2', 'fights', ['fighter2_id'])
    op.create_index('idx_fights_status', 'fights', ['status'])

    op.create_table(
        'rankings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fighter_id', sa.Integer(), sa.ForeignKey('fighters.id'), nullable=False),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('weight_class', sa.String(length=30), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('effective_date', sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            'fighter_id', 'organization_id', 'weight_class', 'active',
            name='uq_ranking_fighter_org_class_active',
        ),
    )
    op.create_index('idx_rankings_org_class', 'rankings', ['organization_id', 'weight_class', 'rank'])

    op.create_table(
        'sync_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sync_type', sa.String(length=30), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('duration_seconds', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('idx_sync_log_type_date', 'sync_log', ['sync_type', 'created_at'])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index('idx_sync_log_type_date', table_name='sync_log')
    op.drop_table('sync_log')
    op.drop_index('idx_rankings_org_class', table_name='rankings')
    op.drop_table('rankings')
    op.drop_index('idx_fights_status', table_name='fights')
    op.drop_index('idx_fights_fighter2', table_name='fights')
    op.drop_index('idx_fights_fighter1', table_name='fights')
    op.drop_index('idx_fights_event', table_name='fights')
    op.drop_table('fights')
    op.drop_index('idx_events_date', table_name='events')
    op.drop_table('events')
    op.drop_index('idx_fighters_last_name_key', table_name='fighters')
    op.drop_index('idx_fighters_name_key', table_name='fighters')
    op.drop_table('fighters')
    op.drop_table('organizations')
