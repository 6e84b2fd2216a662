from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "0001_customers_addresses"
down_revision = None
branch_labels = None
depends_on = None


def _has_index(inspector, table_name: str, index_name: str) -> bool:
    return any(idx["name"] == index_name for idx in inspector.get_indexes(table_name))


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)

    if "tenants" not in inspector.get_table_names():
        op.create_table(
            "tenants",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("slug", sa.String(), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    inspector = inspect(bind)
    if "customers" not in inspector.get_table_names():
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=True),
            sa.Column("user_id", sa.String(length=64), nullable=True),
            sa.Column("first_name", sa.Text(), nullable=False),
            sa.Column("last_name", sa.Text(), nullable=False),
            sa.Column("email", sa.Text(), nullable=False),
            sa.Column("phone_number", sa.String(length=20), nullable=False),
            sa.Column("is_guest", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("acquisition_campaign_id", sa.String(length=64), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("tenant_id", "email", name="uq_customers_tenant_email"),
            sa.UniqueConstraint("tenant_id", "phone_number", name="uq_customers_tenant_phone"),
        )
        op.create_index("ix_customers_tenant_id", "customers", ["tenant_id"], unique=False)
        op.create_index("ix_customers_user_id", "customers", ["user_id"], unique=False)
        op.create_index("ix_customers_email", "customers", ["email"], unique=False)
        op.create_index("ix_customers_phone_number", "customers", ["phone_number"], unique=False)

    inspector = inspect(bind)
    for index_name, column in [
        ("uq_customers_email_without_tenant", "email"),
        ("uq_customers_phone_without_tenant", "phone_number"),
    ]:
        if not _has_index(inspector, "customers", index_name):
            op.create_index(
                index_name,
                "customers",
                [column],
                unique=True,
                sqlite_where=sa.text("tenant_id IS NULL"),
                postgresql_where=sa.text("tenant_id IS NULL"),
            )

    inspector = inspect(bind)
    if "customer_addresses" not in inspector.get_table_names():
        op.create_table(
            "customer_addresses",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), nullable=False),
            sa.Column(
                "customer_id",
                sa.Integer(),
                sa.ForeignKey("customers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("first_name", sa.Text(), nullable=False),
            sa.Column("last_name", sa.Text(), nullable=False),
            sa.Column("phone_number", sa.String(length=20), nullable=False),
            sa.Column("street_address", sa.Text(), nullable=False),
            sa.Column("apartment", sa.Text(), nullable=True),
            sa.Column("city", sa.Text(), nullable=False),
            sa.Column("state", sa.Text(), nullable=False),
            sa.Column("postal_code", sa.String(length=20), nullable=False),
            sa.Column("country", sa.Text(), nullable=False),
            sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_customer_addresses_tenant_id", "customer_addresses", ["tenant_id"], unique=False)
        op.create_index("ix_customer_addresses_customer_id", "customer_addresses", ["customer_id"], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)

    if "customer_addresses" in inspector.get_table_names():
        for index_name in ["ix_customer_addresses_customer_id", "ix_customer_addresses_tenant_id"]:
            if _has_index(inspector, "customer_addresses", index_name):
                op.drop_index(index_name, table_name="customer_addresses")
        op.drop_table("customer_addresses")

    inspector = inspect(bind)
    if "customers" in inspector.get_table_names():
        for index_name in [
            "uq_customers_phone_without_tenant",
            "uq_customers_email_without_tenant",
            "ix_customers_phone_number",
            "ix_customers_email",
            "ix_customers_user_id",
            "ix_customers_tenant_id",
        ]:
            if _has_index(inspector, "customers", index_name):
                op.drop_index(index_name, table_name="customers")
        op.drop_table("customers")

    inspector = inspect(bind)
    if "tenants" in inspector.get_table_names():
        if _has_index(inspector, "tenants", "ix_tenants_slug"):
            op.drop_index("ix_tenants_slug", table_name="tenants")
        op.drop_table("tenants")
