from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ids import gen_id

from app.models.base import Base, TimestampMixin


class ProductListing(TimestampMixin, Base):
    __tablename__ = "product_listings"
    __table_args__ = (
        Index("ix_product_listings_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("lst"))

    # identity id from the identity provider; never changes after insert
    owner_id: Mapped[str] = mapped_column(String(120), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # bucket-relative blob path ("{owner_id}/{name}.{ext}"), never a signed URL
    image_path: Mapped[str] = mapped_column(String(500), nullable=False)
