"""
Lecturas de productos usadas por el módulo de categorías.

Sólo lectura: la gestión de productos vive fuera de este servicio.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.common.exceptions import StoreError
from app.modules.products.models import Product

logger = logging.getLogger(__name__)


class ProductCrud:
    """Consultas de productos por categoría, scoped por tenant"""

    def __init__(self, db: Session, tenant_id: UUID):
        self.db = db
        self.tenant_id = tenant_id

    def _base_query(self, category_id: UUID, active_only: bool):
        query = self.db.query(Product).filter(
            Product.tenant_id == self.tenant_id,
            Product.category_id == category_id,
            Product.deleted_at.is_(None)
        )
        if active_only:
            query = query.filter(Product.is_active == True)
        return query

    def count_by_category(self, category_id: UUID, active_only: bool = False) -> int:
        try:
            return self._base_query(category_id, active_only).count()
        except SQLAlchemyError as e:
            logger.error(f"Error contando productos de la categoría {category_id}: {e}")
            raise StoreError(str(e)) from e

    def find_by_category(self, category_id: UUID, active_only: bool = True, order=None) -> List[Product]:
        try:
            query = self._base_query(category_id, active_only)
            order = order if order is not None else (Product.name.asc(),)
            return query.order_by(*order).all()
        except SQLAlchemyError as e:
            logger.error(f"Error listando productos de la categoría {category_id}: {e}")
            raise StoreError(str(e)) from e
