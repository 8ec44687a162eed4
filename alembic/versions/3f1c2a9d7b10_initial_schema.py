"""initial schema"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1c2a9d7b10"
down_revision = None
branch_labels = None
depends_on = None

order_status = sa.Enum("NEW_ORDER", "COOKING", "SERVED", "PAID", name="order_status")
payment_method = sa.Enum("CASH", "QRIS", name="payment_method")
user_role = sa.Enum("OWNER", "ADMIN", "WAITER", name="user_role")
menu_category = sa.Enum("Menu Utama", "Camilan", "Minuman Dingin", "Minuman Panas", name="menu_category")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("pin", sa.String(12), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])

    op.create_table(
        "menu_items",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("price", sa.Integer, nullable=False, server_default="0"),
        sa.Column("category", menu_category, nullable=False),
        sa.Column("image", sa.String(512), nullable=False, server_default=""),
        sa.Column("is_sold_out", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_menu_items_id", "menu_items", ["id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("table_number", sa.String(64), nullable=False, server_default=""),
        sa.Column("items", sa.JSON, nullable=False),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("status", order_status, nullable=False, server_default="NEW_ORDER"),
        sa.Column("total_price", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("cooking_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("served_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("waiter_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("payment_method", payment_method, nullable=True),
    )
    op.create_index("ix_orders_id", "orders", ["id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_orders_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_menu_items_id", table_name="menu_items")
    op.drop_table("menu_items")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (payment_method, order_status, menu_category, user_role):
        enum_type.drop(bind, checkfirst=True)
