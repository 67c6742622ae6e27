from app.database.database import Base
from sqlalchemy import Column, String, Boolean, ForeignKey, Numeric, Text, Uuid, UniqueConstraint
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, SoftDeleteMixin


class Product(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    """Producto maestro; aquí sólo importa su referencia a la categoría."""
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    image_path = Column(String(500), nullable=True)
    price_sale = Column(Numeric(15, 2), nullable=False, default=0)  # Precio de venta
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_product_tenant_sku"),
    )
