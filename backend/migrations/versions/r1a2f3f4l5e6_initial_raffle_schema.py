"""initial raffle schema

Revision ID: r1a2f3f4l5e6
Revises:
Create Date: 2025-10-01 00:00:00.000000

Creates the complete raffle schema:
- sellers: sellers and admins (bcrypt password hashes, role)
- seller_sessions: at most one active session per seller (token hash only)
- tickets: append-only raffle entries
- ticket_numbers: number -> ticket, UNIQUE on number
- issuance_lock: singleton row that serializes ticket issuance
- prizes: prizes and their winning numbers
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'r1a2f3f4l5e6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # sellers
    # ============================================================================
    op.create_table(
        'sellers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_sellers_name'),
        sa.UniqueConstraint('username', name='uq_sellers_username'),
        sa.CheckConstraint("role IN ('seller', 'admin')", name='ck_sellers_role'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sellers_username', 'sellers', ['username'])

    # ============================================================================
    # seller_sessions: 1:1 with sellers, overwrite = invalidate
    # ============================================================================
    op.create_table(
        'seller_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['seller_id'], ['sellers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('seller_id', name='uq_seller_sessions_seller'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_seller_sessions_seller_id', 'seller_sessions', ['seller_id'])
    op.create_index('ix_seller_sessions_token_hash', 'seller_sessions', ['token_hash'], unique=True)

    # ============================================================================
    # tickets
    # ============================================================================
    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('buyer_name', sa.String(length=120), nullable=False),
        sa.Column('buyer_phone_number', sa.String(length=32), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['seller_id'], ['sellers.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_tickets_seller_id', 'tickets', ['seller_id'])

    # ============================================================================
    # ticket_numbers: the UNIQUE(number) constraint prevents double allocation
    # ============================================================================
    op.create_table(
        'ticket_numbers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ticket_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number', name='uq_ticket_numbers_number'),
        sa.CheckConstraint('number >= 0 AND number <= 999', name='ck_ticket_numbers_range'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_ticket_numbers_ticket_id', 'ticket_numbers', ['ticket_id'])

    # ============================================================================
    # issuance_lock: singleton row locked by every issuance (ticket cap)
    # ============================================================================
    issuance_lock = op.create_table(
        'issuance_lock',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.bulk_insert(issuance_lock, [{'id': 1}])

    # ============================================================================
    # prizes
    # ============================================================================
    op.create_table(
        'prizes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('prize_order', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('winning_number', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('prize_order', name='uq_prizes_order'),
        sa.CheckConstraint(
            'winning_number IS NULL OR (winning_number >= 0 AND winning_number <= 999)',
            name='ck_prizes_winning_number_range'
        ),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('prizes')
    op.drop_table('issuance_lock')
    op.drop_index('ix_ticket_numbers_ticket_id', table_name='ticket_numbers')
    op.drop_table('ticket_numbers')
    op.drop_index('ix_tickets_seller_id', table_name='tickets')
    op.drop_table('tickets')
    op.drop_index('ix_seller_sessions_token_hash', table_name='seller_sessions')
    op.drop_index('ix_seller_sessions_seller_id', table_name='seller_sessions')
    op.drop_table('seller_sessions')
    op.drop_index('ix_sellers_username', table_name='sellers')
    op.drop_table('sellers')
