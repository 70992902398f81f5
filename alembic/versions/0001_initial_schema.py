"""initial schema: events, tickets, verification attempts, fraud alerts

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("venue", sa.String(255), nullable=False),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("venue_latitude", sa.Float, nullable=True),
        sa.Column("venue_longitude", sa.Float, nullable=True),
        sa.Column("organizer_address", sa.String(128), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "tickets",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("token_id", sa.Integer, unique=True, nullable=True),
        sa.Column("event_id", sa.String(64), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("owner_address", sa.String(128), nullable=False),
        sa.Column("owner_name", sa.String(255), nullable=True),
        sa.Column("transaction_hash", sa.String(128), nullable=True),
        sa.Column("is_used", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_verification_token", sa.String(128), unique=True, nullable=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("token_qr_type", sa.String(32), nullable=True),
        sa.Column("last_token_generation", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_tickets_owner", "tickets", ["owner_address"])
    op.create_index("idx_tickets_event", "tickets", ["event_id"])
    op.create_index("idx_tickets_token", "tickets", ["current_verification_token"])

    op.create_table(
        "verification_attempts",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("ticket_id", sa.String(64), nullable=True),
        sa.Column("scanner_id", sa.String(255), nullable=True),
        sa.Column("scanner_location", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(128), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("outcome", sa.String(32), nullable=False),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_attempts_token_time", "verification_attempts", ["token", "attempted_at"])
    op.create_index("idx_attempts_ticket_time", "verification_attempts", ["ticket_id", sa.text("attempted_at DESC")])

    op.create_table(
        "fraud_alerts",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("ticket_id", sa.String(64), nullable=True),
        sa.Column("token", sa.String(255), nullable=True),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_fraud_alerts_created_at", "fraud_alerts", [sa.text("created_at DESC")])
    op.create_index("idx_fraud_alerts_ticket", "fraud_alerts", ["ticket_id"])


def downgrade() -> None:
    op.drop_index("idx_fraud_alerts_ticket", table_name="fraud_alerts")
    op.drop_index("idx_fraud_alerts_created_at", table_name="fraud_alerts")
    op.drop_table("fraud_alerts")
    op.drop_index("idx_attempts_ticket_time", table_name="verification_attempts")
    op.drop_index("idx_attempts_token_time", table_name="verification_attempts")
    op.drop_table("verification_attempts")
    op.drop_index("idx_tickets_token", table_name="tickets")
    op.drop_index("idx_tickets_event", table_name="tickets")
    op.drop_index("idx_tickets_owner", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("events")
