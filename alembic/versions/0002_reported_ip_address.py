"""keep the scanner-reported ip alongside the connection ip

Revision ID: 0002_reported_ip_address
Revises: 0001_initial_schema
Create Date: 2026-10-18 12:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0002_reported_ip_address"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("verification_attempts") as batch_op:
        batch_op.add_column(sa.Column("reported_ip_address", sa.String(128), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("verification_attempts") as batch_op:
        batch_op.drop_column("reported_ip_address")
