"""Initial schema: inventory piles, cash ledger, trips, owner sales, transfers, audit

Revision ID: 20261017_initial
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "inventory",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("freezer_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("flavor_id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("min_stock_alert", sa.Integer(), nullable=False),
        sa.Column("is_deformed", sa.Boolean(), nullable=False),
        sa.Column("assigned_worker_id", sa.Integer(), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "freezer_id", "product_id", "flavor_id", "provider_id", "is_deformed", "assigned_worker_id",
            name="uq_inventory_pile",
        ),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_inventory_freezer_id", "inventory", ["freezer_id"])
    op.create_index("ix_inventory_is_deformed", "inventory", ["is_deformed"])
    op.create_index("ix_inventory_product_flavor", "inventory", ["product_id", "flavor_id"])
    op.create_index("ix_inventory_worker_deformed", "inventory", ["assigned_worker_id", "is_deformed"])

    op.create_table(
        "cash_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("balance_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("related_doc_type", sa.String(length=64), nullable=True),
        sa.Column("related_doc_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_cash_entries_type", "cash_entries", ["type"])
    op.create_index("ix_cash_entries_created", "cash_entries", ["created_at"])
    op.create_index("ix_cash_entries_related_doc", "cash_entries", ["related_doc_type", "related_doc_id"])

    op.create_table(
        "cash_ledger_head",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("balance_cents", sa.Integer(), nullable=False),
        sa.Column("last_entry_id", sa.Integer(), sa.ForeignKey("cash_entries.id"), nullable=True),
        sa.Column("entry_count", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "workers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("current_debt_cents", sa.Integer(), nullable=False),
        sa.Column("total_sales", sa.Integer(), nullable=False),
        sa.Column("last_sale", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "routes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "worker_trips",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("route_id", sa.Integer(), sa.ForeignKey("routes.id"), nullable=True),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("sold_quantity", sa.Integer(), nullable=False),
        sa.Column("amount_due_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_worker_trips_worker_id", "worker_trips", ["worker_id"])
    op.create_index("ix_worker_trips_worker_departure", "worker_trips", ["worker_id", "departure_time"])
    op.create_index("ix_worker_trips_status_departure", "worker_trips", ["status", "departure_time"])

    op.create_table(
        "worker_trip_loaded_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("trip_id", sa.Integer(), sa.ForeignKey("worker_trips.id"), nullable=False),
        sa.Column("inventory_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("flavor_id", sa.Integer(), nullable=False),
        sa.Column("freezer_id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.Column("is_deformed", sa.Boolean(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_worker_trip_loaded_items_trip_id", "worker_trip_loaded_items", ["trip_id"])
    op.create_index(
        "ix_trip_loaded_product_flavor", "worker_trip_loaded_items", ["trip_id", "product_id", "flavor_id"]
    )

    op.create_table(
        "worker_trip_returned_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("trip_id", sa.Integer(), sa.ForeignKey("worker_trips.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("flavor_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("is_deformed", sa.Boolean(), nullable=False),
        sa.Column("destination_freezer_id", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_worker_trip_returned_items_trip_id", "worker_trip_returned_items", ["trip_id"])

    op.create_table(
        "owner_sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("route_id", sa.Integer(), sa.ForeignKey("routes.id"), nullable=True),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sold_quantity", sa.Integer(), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("auto_withdrawal_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_owner_sales_owner_id", "owner_sales", ["owner_id"])
    op.create_index("ix_owner_sales_created", "owner_sales", ["created_at"])

    op.create_table(
        "owner_sale_loaded_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("owner_sales.id"), nullable=False),
        sa.Column("inventory_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("flavor_id", sa.Integer(), nullable=False),
        sa.Column("freezer_id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.Column("is_deformed", sa.Boolean(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_owner_sale_loaded_items_sale_id", "owner_sale_loaded_items", ["sale_id"])
    op.create_index(
        "ix_owner_loaded_product_flavor", "owner_sale_loaded_items", ["sale_id", "product_id", "flavor_id"]
    )

    op.create_table(
        "owner_sale_returned_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("owner_sales.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("flavor_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("is_deformed", sa.Boolean(), nullable=False),
        sa.Column("destination_freezer_id", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_owner_sale_returned_items_sale_id", "owner_sale_returned_items", ["sale_id"])

    op.create_table(
        "freezer_transfers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("from_freezer_id", sa.Integer(), nullable=False),
        sa.Column("to_freezer_id", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_freezer_transfers_from", "freezer_transfers", ["from_freezer_id", "created_at"])
    op.create_index("ix_freezer_transfers_to", "freezer_transfers", ["to_freezer_id", "created_at"])

    op.create_table(
        "freezer_transfer_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transfer_id", sa.Integer(), sa.ForeignKey("freezer_transfers.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("flavor_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_freezer_transfer_items_transfer_id", "freezer_transfer_items", ["transfer_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("table_name", sa.String(length=64), nullable=False),
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("changes_before", sa.JSON(), nullable=True),
        sa.Column("changes_after", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("actor_role", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_audit_log_table_record", "audit_log", ["table_name", "record_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade():
    op.drop_table("audit_log")
    op.drop_table("freezer_transfer_items")
    op.drop_table("freezer_transfers")
    op.drop_table("owner_sale_returned_items")
    op.drop_table("owner_sale_loaded_items")
    op.drop_table("owner_sales")
    op.drop_table("worker_trip_returned_items")
    op.drop_table("worker_trip_loaded_items")
    op.drop_table("worker_trips")
    op.drop_table("routes")
    op.drop_table("workers")
    op.drop_table("cash_ledger_head")
    op.drop_table("cash_entries")
    op.drop_table("inventory")
