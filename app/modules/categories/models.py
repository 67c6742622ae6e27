from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, Index, Uuid, text
from uuid import uuid4

from app.database.database import Base
from app.common.mixins import TenantMixin, TimestampMixin, SoftDeleteMixin


class Category(Base, TenantMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    # Sin relationship(): el árbol se recorre por parent_id explícito
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    image_path = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        # Respaldo del chequeo de nombre por nivel; NULL != NULL deja fuera el nivel raíz
        Index(
            "uq_category_tenant_parent_name",
            "tenant_id", "parent_id", "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("idx_categories_tenant_sort", "tenant_id", "parent_id", "sort_order"),
    )

    def __repr__(self):
        return f"<Category {self.name!r} parent={self.parent_id}>"
