"""one active waitlist entry per request

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-21 10:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade():
    op.create_index(
        "uq_waitlist_active_request",
        "waitlist",
        [
            sa.text("lower(email)"),
            "preferred_date",
            sa.text("coalesce(preferred_time, '')"),
            "service_id",
        ],
        unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )


def downgrade():
    op.drop_index("uq_waitlist_active_request", table_name="waitlist")
