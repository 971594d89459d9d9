"""auction orders schema

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def _address_columns() -> list[sa.Column]:
    return [
        sa.Column("first_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("address_1", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("address_2", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("city", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("state", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("postcode", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("country", sa.String(length=2), nullable=False, server_default=""),
    ]


def _ensure_users(inspector: sa.Inspector) -> None:
    if _table_exists(inspector, "users"):
        return
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("billing_address_1", sa.String(length=255), nullable=True),
        sa.Column("billing_address_2", sa.String(length=255), nullable=True),
        sa.Column("billing_city", sa.String(length=255), nullable=True),
        sa.Column("billing_state", sa.String(length=255), nullable=True),
        sa.Column("billing_postcode", sa.String(length=32), nullable=True),
        sa.Column("billing_country", sa.String(length=2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)


def _ensure_orders(inspector: sa.Inspector) -> None:
    if _table_exists(inspector, "orders"):
        return
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="pending-payment"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="EUR"),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("payment_method_title", sa.String(length=255), nullable=True),
        sa.Column("shipping_method_title", sa.String(length=255), nullable=True),
        sa.Column("shipping_total", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("customer_ip_address", sa.String(length=64), nullable=True),
        sa.Column("customer_user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_via", sa.String(length=32), nullable=True),
        sa.Column("is_auction_order", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_orders_id", "orders", ["id"], unique=False)
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"], unique=False)


def _ensure_products(inspector: sa.Inspector) -> None:
    if not _table_exists(inspector, "products"):
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("slug", sa.String(length=255), nullable=False),
            sa.Column("product_type", sa.String(length=32), nullable=False, server_default="simple"),
            sa.Column("regular_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
            sa.Column("auction_current_bid", sa.Numeric(10, 2), nullable=True),
            sa.Column("auction_current_bidder_id", sa.Integer(), nullable=True),
            sa.Column("auction_dates_from", sa.DateTime(timezone=True), nullable=True),
            sa.Column("auction_dates_to", sa.DateTime(timezone=True), nullable=True),
            sa.Column("auction_bought_now", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("auction_emails_suppressed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("auction_order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index("ix_products_id", "products", ["id"], unique=False)
        op.create_index("ix_products_slug", "products", ["slug"], unique=True)

    if not _table_exists(inspector, "product_visibility_terms"):
        op.create_table(
            "product_visibility_terms",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column(
                "product_id",
                sa.Integer(),
                sa.ForeignKey("products.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("term", sa.String(length=64), nullable=False),
            sa.UniqueConstraint("product_id", "term", name="uq_product_visibility_term"),
        )
        op.create_index("ix_product_visibility_terms_id", "product_visibility_terms", ["id"], unique=False)
        op.create_index(
            "ix_product_visibility_terms_product_id",
            "product_visibility_terms",
            ["product_id"],
            unique=False,
        )


def _ensure_order_children(inspector: sa.Inspector) -> None:
    if not _table_exists(inspector, "order_items"):
        op.create_table(
            "order_items",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
            sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
            sa.Column("subtotal", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
            sa.Column("total", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        )
        op.create_index("ix_order_items_id", "order_items", ["id"], unique=False)
        op.create_index("ix_order_items_order_id", "order_items", ["order_id"], unique=False)

    if not _table_exists(inspector, "order_addresses"):
        op.create_table(
            "order_addresses",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
            sa.Column("address_type", sa.String(length=16), nullable=False),
            *_address_columns(),
            sa.UniqueConstraint("order_id", "address_type", name="uq_order_address_type"),
        )
        op.create_index("ix_order_addresses_id", "order_addresses", ["id"], unique=False)
        op.create_index("ix_order_addresses_order_id", "order_addresses", ["order_id"], unique=False)

    if not _table_exists(inspector, "order_notes"):
        op.create_table(
            "order_notes",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("is_customer_note", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("added_manually", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index("ix_order_notes_id", "order_notes", ["id"], unique=False)
        op.create_index("ix_order_notes_order_id", "order_notes", ["order_id"], unique=False)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    _ensure_users(inspector)
    inspector = sa.inspect(bind)
    _ensure_orders(inspector)
    inspector = sa.inspect(bind)
    _ensure_products(inspector)
    inspector = sa.inspect(bind)
    _ensure_order_children(inspector)


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    for table_name in (
        "order_notes",
        "order_addresses",
        "order_items",
        "product_visibility_terms",
        "products",
        "orders",
        "users",
    ):
        if _table_exists(inspector, table_name):
            op.drop_table(table_name)
