"""Worker payments, and uniqueness of unassigned inventory piles

Revision ID: 20261017_worker_payments
Revises: 20261017_initial
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_worker_payments"
down_revision = "20261017_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "worker_payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("trip_id", sa.Integer(), sa.ForeignKey("worker_trips.id"), nullable=False, unique=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("previous_debt_cents", sa.Integer(), nullable=False),
        sa.Column("new_debt_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_worker_payments_worker_created", "worker_payments", ["worker_id", "created_at"])

    op.create_index(
        "uq_inventory_unassigned_pile",
        "inventory",
        ["freezer_id", "product_id", "flavor_id", "provider_id", "is_deformed"],
        unique=True,
        sqlite_where=sa.text("assigned_worker_id IS NULL"),
        postgresql_where=sa.text("assigned_worker_id IS NULL"),
    )


def downgrade():
    op.drop_index("uq_inventory_unassigned_pile", table_name="inventory")
    op.drop_index("ix_worker_payments_worker_created", table_name="worker_payments")
    op.drop_table("worker_payments")
