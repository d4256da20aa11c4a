from alembic import op
import sqlalchemy as sa

revision = "0001_product_listings"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "product_listings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("owner_id", sa.String(length=120), nullable=False),

        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_path", sa.String(length=500), nullable=False),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_index("ix_product_listings_owner_created", "product_listings", ["owner_id", "created_at"])


def downgrade():
    op.drop_index("ix_product_listings_owner_created", table_name="product_listings")
    op.drop_table("product_listings")
