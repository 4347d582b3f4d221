"""Initial Schema - GrowTrack

Revision ID: 001
Revises:
Create Date: 2026-10-17

Anbausysteme, Plätze, Trays, Sorten und Standort-Historie.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


system_type = sa.Enum(
    'NURSERY', 'BLACKOUT', 'EBB_FLOW', 'TOWER', 'NFT_CHANNEL_GROUP', 'MICROGREEN_RACK',
    name='systemtype',
)
crop_category = sa.Enum('MICROGREENS', 'LEAFY_GREENS', name='cropcategory')
spot_kind = sa.Enum('PORTS', 'SLOTS', 'SPACES', name='spotkind')
tray_status = sa.Enum(
    'SEEDED', 'GERMINATING', 'GROWING', 'READY', 'HARVESTED', 'SPLIT', 'DISCARDED',
    name='traystatus',
)


def upgrade() -> None:
    # Anbausysteme
    op.create_table(
        'growing_systems',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('system_type', system_type, nullable=False, index=True),
        sa.Column('category', crop_category, nullable=False),
        sa.Column('location', sa.String(100), nullable=False, index=True),
        sa.Column('capacity', sa.Integer, nullable=False),
        sa.Column('occupancy', sa.Integer, nullable=False, server_default='0'),
        sa.Column('same_per_channel', sa.Boolean, server_default='false'),
        sa.Column('max_per_tray', sa.Integer),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.CheckConstraint('occupancy >= 0 AND occupancy <= capacity', name='ck_system_occupancy'),
    )

    # Abschnitte (Kanäle, Türme)
    op.create_table(
        'system_sections',
        sa.Column('system_id', sa.String(50), sa.ForeignKey('growing_systems.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('code', sa.String(50), primary_key=True),
        sa.Column('position', sa.Integer, nullable=False),
        sa.Column('spot_count', sa.Integer, nullable=False),
        sa.Column('spot_kind', spot_kind),
    )

    # Plätze
    op.create_table(
        'spots',
        sa.Column('system_id', sa.String(50), sa.ForeignKey('growing_systems.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('id', sa.String(80), primary_key=True),
        sa.Column('section_code', sa.String(50), index=True),
        sa.Column('position', sa.Integer, nullable=False),
        sa.Column('occupied', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('tray_id', sa.String(80), index=True),
        sa.Column('plant_type', sa.String(100)),
        sa.Column('planted_date', sa.Date),
        sa.CheckConstraint(
            '(occupied AND tray_id IS NOT NULL) OR (NOT occupied AND tray_id IS NULL)',
            name='ck_spot_occupied_tray',
        ),
    )

    # Trays
    op.create_table(
        'trays',
        sa.Column('id', sa.String(80), primary_key=True),
        sa.Column('crop_type', sa.String(100), nullable=False, index=True),
        sa.Column('crop_category', crop_category, nullable=False),
        sa.Column('location_code', sa.String(10), nullable=False),
        sa.Column('instance', sa.Integer, nullable=False, server_default='1'),
        sa.Column('date_planted', sa.Date, nullable=False, index=True),
        sa.Column('expected_harvest', sa.Date, nullable=False),
        sa.Column('status', tray_status, nullable=False, index=True),
        sa.Column('current_system_id', sa.String(50), index=True),
        sa.Column('current_system_type', system_type),
        sa.Column('current_spot_ids', sa.JSON),
        sa.Column('moved_at', sa.DateTime),
        sa.Column('parent_tray_id', sa.String(80), sa.ForeignKey('trays.id'), index=True),
        sa.Column('plant_count', sa.Integer, nullable=False),
        sa.Column('notes', sa.Text, server_default=''),
        sa.Column('created_by', sa.String(100), nullable=False),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime, server_default=sa.text('NOW()')),
    )

    # Sorten je Tray
    op.create_table(
        'tray_varieties',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('tray_id', sa.String(80), sa.ForeignKey('trays.id'), nullable=False, index=True),
        sa.Column('position', sa.Integer, nullable=False, server_default='0'),
        sa.Column('seed_id', sa.String(50), nullable=False),
        sa.Column('seed_name', sa.String(100), nullable=False),
        sa.Column('sku', sa.String(20)),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('seeds_oz', sa.Numeric(10, 2), server_default='0'),
    )

    # Standort-Historie (nur anhängen)
    op.create_table(
        'tray_location_history',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('tray_id', sa.String(80), sa.ForeignKey('trays.id'), nullable=False, index=True),
        sa.Column('sequence', sa.Integer, nullable=False),
        sa.Column('system_id', sa.String(50), nullable=False),
        sa.Column('system_type', system_type, nullable=False),
        sa.Column('spot_ids', sa.JSON),
        sa.Column('moved_at', sa.DateTime, nullable=False, index=True),
        sa.Column('moved_by', sa.String(100), nullable=False),
        sa.Column('reason', sa.Text),
        sa.UniqueConstraint('tray_id', 'sequence', name='uq_history_tray_sequence'),
    )


def downgrade() -> None:
    op.drop_table('tray_location_history')
    op.drop_table('tray_varieties')
    op.drop_table('trays')
    op.drop_table('spots')
    op.drop_table('system_sections')
    op.drop_table('growing_systems')
    for enum in (tray_status, spot_kind, crop_category, system_type):
        enum.drop(op.get_bind(), checkfirst=True)
